"""Per-invocation context handed to command callbacks via ``click.Context.obj``."""

from __future__ import annotations

from dataclasses import dataclass

import click

from notioncli.config import ResolvedConfig
from notioncli.errors import AuthError, InternalError
from notioncli.http import ApiResponse, ApiTransport, RequestDescriptor
from notioncli.ops.registry import OpsRegistry, default_registry_path


def build_transport(config: ResolvedConfig) -> ApiTransport:
    """Create the transport used by commands; tests replace this factory."""
    return ApiTransport(config)


def build_registry() -> OpsRegistry:
    return OpsRegistry(default_registry_path())


@dataclass(frozen=True)
class CommandContext:
    """Resolved state for one command invocation."""

    command: str
    config: ResolvedConfig
    output_file: str | None = None
    pretty: bool = False
    ndjson: bool = False
    validate: bool = True
    quiet: bool = False

    def require_token(self) -> str:
        if not self.config.token:
            raise AuthError(
                "Missing Notion token",
                suggested_action="Provide --token, --token-stdin, or NOTION_TOKEN",
            )
        return self.config.token

    def request(self, descriptor: RequestDescriptor) -> ApiResponse:
        with build_transport(self.config) as api:
            return api.request(descriptor)

    def transport(self) -> ApiTransport:
        """Return a transport the caller must close, for multi-request commands."""
        return build_transport(self.config)

    def registry(self) -> OpsRegistry:
        return build_registry()


def get_command_context(ctx: click.Context) -> CommandContext:
    obj = ctx.find_object(CommandContext)
    if obj is None:
        raise InternalError("Command context was not resolved before the callback ran")
    return obj
