"""Read and write the profiles config file."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

import typer

from notioncli.command import NotionTyper
from notioncli.config import PROFILE_FIELDS, load_config_file, save_config_file
from notioncli.errors import InputError

app = NotionTyper(name="config", help="Manage CLI configuration.")

DEFAULT_PROFILE = "default"
_INT_FIELDS = ("timeout_ms", "retries")
_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")

Key = Annotated[str, typer.Argument(help="token, default-profile or profile.<name>.<field>.")]


@dataclass(frozen=True)
class ConfigKey:
    field: str
    profile: str | None = None

    @property
    def is_root(self) -> bool:
        return self.profile is None


def parse_key(key: str) -> ConfigKey:
    """Map a dotted config key onto the file layout.

    ``token`` addresses the ``default`` profile, ``default-profile`` the
    top-level ``default_profile`` entry.
    """

    if key == "token":
        return ConfigKey(field="token", profile=DEFAULT_PROFILE)
    if key == "default-profile":
        return ConfigKey(field="default_profile")
    if key.startswith("profile."):
        parts = key.split(".")
        if len(parts) != 3 or not parts[1] or not parts[2]:
            raise InputError(
                "Config key must be profile.<name>.<field>",
                suggested_action="Use profile.<name>.token",
                context={"key": key},
            )
        if parts[2] not in PROFILE_FIELDS:
            raise InputError(
                "Unknown profile config field",
                suggested_action=f"Use one of {', '.join(PROFILE_FIELDS)}",
                context={"field": parts[2]},
            )
        return ConfigKey(field=parts[2], profile=parts[1])
    raise InputError(
        "Unknown config key",
        suggested_action="Use token, default-profile, or profile.<name>.token",
        context={"key": key},
    )


def coerce_value(field: str, value: str) -> Any:
    """Store numeric and boolean profile fields with their JSON types."""

    if field in _INT_FIELDS:
        try:
            return int(value)
        except ValueError as exc:
            raise InputError(f"{field} must be an integer", context={"value": value}) from exc
    if field == "pretty":
        lowered = value.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise InputError("pretty must be true or false", context={"value": value})
    return value


@app.command("set")
def set_value(
    key: Key,
    value: Annotated[str, typer.Argument(help="Value to store.")],
) -> Any:
    """Set a configuration value."""
    parsed = parse_key(key)
    data = load_config_file() or {}
    if parsed.is_root:
        data[parsed.field] = value
    else:
        profiles = data.setdefault("profiles", {})
        profiles.setdefault(parsed.profile, {})[parsed.field] = coerce_value(parsed.field, value)
        data.setdefault("default_profile", parsed.profile)
    save_config_file(data)
    return {"ok": True, "path": key}


@app.command("get")
def get_value(key: Key) -> Any:
    """Get a configuration value; unset keys read as null."""
    parsed = parse_key(key)
    data = load_config_file() or {}
    if parsed.is_root:
        return {"value": data.get(parsed.field)}
    profile = (data.get("profiles") or {}).get(parsed.profile) or {}
    return {"value": profile.get(parsed.field)}


@app.command("unset")
def unset_value(key: Key) -> Any:
    """Remove a configuration value."""
    parsed = parse_key(key)
    data = load_config_file() or {}
    if parsed.is_root:
        data.pop(parsed.field, None)
    else:
        profile = (data.get("profiles") or {}).get(parsed.profile)
        if isinstance(profile, dict):
            profile.pop(parsed.field, None)
    save_config_file(data)
    return {"ok": True, "path": key}
