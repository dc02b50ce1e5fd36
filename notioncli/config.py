"""Configuration precedence for the Notion CLI.

Resolution order, highest first::

    explicit flag > piped secret (token only) > NOTION_* env var
        > named profile value > built-in default

The config file holds named profiles::

    {
      "default_profile": "work",
      "profiles": {"work": {"token": "...", "notion_version": "2025-09-03"}}
    }
"""

from __future__ import annotations

import json
import os
import stat
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from notioncli.errors import ConfigError
from notioncli.observability import get_logger

log = get_logger("notioncli.config")

DEFAULT_BASE_URL = "https://api.notion.com/v1"
DEFAULT_NOTION_VERSION = "2025-09-03"
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_RETRIES = 2
CONFIG_FILE_NAME = "config.json"
PROFILE_FIELDS = ("token", "notion_version", "timeout_ms", "retries", "pretty")


def config_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Return the directory holding the config file and the ops registry."""

    env = os.environ if environ is None else environ
    override = env.get("NOTION_CLI_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "notion-cli"


def config_path(environ: Mapping[str, str] | None = None) -> Path:
    return config_dir(environ) / CONFIG_FILE_NAME


@dataclass(frozen=True)
class ResolvedConfig:
    """Effective configuration for one invocation. Never persisted."""

    token: str | None = None
    notion_version: str = DEFAULT_NOTION_VERSION
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retries: int = DEFAULT_RETRIES
    pretty: bool = False
    profile: str | None = None
    base_url: str = DEFAULT_BASE_URL

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000


def load_config_file(path: Path | None = None) -> dict[str, Any] | None:
    """Read the profiles file, or ``None`` when it does not exist."""

    target = path or config_path()
    try:
        mode = target.stat().st_mode
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise ConfigError(f"Cannot read config file: {exc}", context={"path": str(target)}) from exc

    if mode & (stat.S_IRWXG | stat.S_IRWXO):
        log.warning(
            "config file permissions are too open",
            extra={"extra_fields": {"path": str(target), "fix": f"chmod 600 {target}"}},
        )

    try:
        raw = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file: {exc}", context={"path": str(target)}) from exc
    if not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"Config file is not valid JSON: {exc.msg} at line {exc.lineno}",
            context={"path": str(target)},
        ) from exc
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object", context={"path": str(target)})
    return data


def save_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    target = path or config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    os.chmod(target, 0o600)
    return target


def _env_int(env: Mapping[str, str], key: str) -> int | None:
    value = env.get(key)
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(
            f"{key} must be an integer, got {value!r}",
            context={"variable": key},
        ) from exc


def _env_bool(env: Mapping[str, str], key: str) -> bool | None:
    value = env.get(key)
    if value is None or value == "":
        return None
    return value == "1"


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def resolve_config(
    *,
    token: str | None = None,
    stdin_token: str | None = None,
    profile: str | None = None,
    notion_version: str | None = None,
    timeout_ms: int | None = None,
    retries: int | None = None,
    pretty: bool | None = None,
    environ: Mapping[str, str] | None = None,
    file_config: dict[str, Any] | None = None,
) -> ResolvedConfig:
    """Merge flags, piped secret, environment, profile and defaults.

    This is the only place that reads ambient process state; everything
    downstream receives the returned :class:`ResolvedConfig`.
    """

    env = os.environ if environ is None else environ
    if file_config is None:
        file_config = load_config_file(config_path(env)) or {}

    profile_name = profile or file_config.get("default_profile")
    profiles = file_config.get("profiles") or {}
    profile_values: dict[str, Any] = {}
    if profile_name:
        candidate = profiles.get(profile_name)
        if isinstance(candidate, dict):
            profile_values = candidate
        elif profile is not None:
            raise ConfigError(
                f"Profile '{profile}' is not defined",
                context={"profile": profile, "available": sorted(profiles)},
            )

    resolved_timeout = _first(
        timeout_ms,
        _env_int(env, "NOTION_TIMEOUT"),
        profile_values.get("timeout_ms"),
        DEFAULT_TIMEOUT_MS,
    )
    resolved_retries = _first(
        retries,
        _env_int(env, "NOTION_RETRIES"),
        profile_values.get("retries"),
        DEFAULT_RETRIES,
    )
    try:
        resolved_timeout = int(resolved_timeout)
        resolved_retries = int(resolved_retries)
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            "Profile timeout_ms and retries must be integers",
            context={"profile": profile_name},
        ) from exc
    if resolved_timeout <= 0 or resolved_retries < 0:
        raise ConfigError(
            "Timeout must be positive and retries must not be negative",
            context={"timeout_ms": resolved_timeout, "retries": resolved_retries},
        )

    return ResolvedConfig(
        token=_first(token, stdin_token, env.get("NOTION_TOKEN") or None, profile_values.get("token")),
        notion_version=_first(
            notion_version,
            env.get("NOTION_VERSION") or None,
            profile_values.get("notion_version"),
            DEFAULT_NOTION_VERSION,
        ),
        timeout_ms=resolved_timeout,
        retries=resolved_retries,
        pretty=bool(_first(pretty, _env_bool(env, "NOTION_PRETTY"), profile_values.get("pretty"), False)),
        profile=profile_name,
        base_url=(env.get("NOTION_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
    )
