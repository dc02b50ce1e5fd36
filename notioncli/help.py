"""Machine-readable help tree emitted by ``--help-json``."""

from __future__ import annotations

import inspect
from typing import Any

import click

from notioncli import __version__
from notioncli.command import GlobalOption
from notioncli.exit_codes import EXIT_CODE_MEANINGS

EXAMPLE_OVERRIDES: dict[str, list[str]] = {
    "notion": [
        "notion users me",
        "notion search --query \"Meals\" --filter '{\"property\":\"object\",\"value\":\"data_source\"}'",
        "notion --help-json",
    ],
    "notion users": ["notion users me", "notion users get <user_id>"],
    "notion users get": ["notion users get <user_id>", "notion users get --id <user_id>"],
    "notion search": [
        "notion search --query \"Meals\" --sort '{\"timestamp\":\"last_edited_time\",\"direction\":\"descending\"}'",
    ],
    "notion ops wait": ["notion ops wait <op_id> --timeout 120"],
}


def _param_type(param: click.Parameter) -> str:
    if isinstance(param, click.Option) and param.is_flag:
        return "boolean"
    if isinstance(param.type, (click.types.IntParamType, click.types.FloatParamType)):
        return "number"
    return "string"


def _description(text: str | None) -> str | None:
    if not text:
        return None
    return inspect.cleandoc(text).splitlines()[0]


def _flag_node(param: click.Option) -> dict[str, Any]:
    node: dict[str, Any] = {
        "name": ", ".join([*param.opts, *param.secondary_opts]),
        "type": _param_type(param),
        "description": param.help,
    }
    if param.required:
        node["required"] = True
    if param.default is not None and param.default is not False and not callable(param.default):
        node["default"] = param.default
    if isinstance(param.type, click.Choice):
        node["choices"] = list(param.type.choices)
    if param.envvar:
        node["env"] = param.envvar
    return node


def _arg_node(param: click.Argument) -> dict[str, Any]:
    node: dict[str, Any] = {"name": param.name, "required": param.required}
    if param.nargs == -1:
        node["variadic"] = True
    return node


def _examples(path: str, command: click.Command) -> list[str]:
    if path in EXAMPLE_OVERRIDES:
        return EXAMPLE_OVERRIDES[path]
    if isinstance(command, click.Group):
        visible = [name for name, sub in command.commands.items() if not sub.hidden]
        return [f"{path} {visible[0]} --help"] if visible else [f"{path} --help"]

    parts = [path]
    for param in command.params:
        if isinstance(param, click.Argument) and param.required:
            parts.append(f"<{param.name}>")
        elif isinstance(param, click.Option) and param.required:
            parts.append(f"{param.opts[-1]} <value>")
    return [" ".join(parts)]


def _is_global(param: click.Parameter) -> bool:
    return isinstance(param, GlobalOption)


def _command_node(command: click.Command, ctx: click.Context) -> dict[str, Any]:
    path = ctx.command_path
    node: dict[str, Any] = {
        "name": command.name,
        "description": _description(command.help),
        "usage": f"{path} {' '.join(command.collect_usage_pieces(ctx))}".strip(),
        "flags": [_flag_node(p) for p in command.params if isinstance(p, click.Option) and not _is_global(p) and not p.hidden],
        "args": [_arg_node(p) for p in command.params if isinstance(p, click.Argument)],
        "examples": _examples(path, command),
        "commands": [],
    }
    if isinstance(command, click.Group):
        for name, sub in command.commands.items():
            if sub.hidden:
                continue
            sub_ctx = click.Context(sub, info_name=name, parent=ctx)
            node["commands"].append(_command_node(sub, sub_ctx))
    return node


def build_help_tree(root: click.Command, *, prog_name: str = "notion") -> dict[str, Any]:
    """Describe every command, flag and exit code of the CLI."""

    ctx = click.Context(root, info_name=prog_name)
    tree = _command_node(root, ctx)
    global_flags = [{"name": "--help", "type": "boolean", "description": "Show this help message."}]
    global_flags.extend(_flag_node(p) for p in root.params if isinstance(p, click.Option) and _is_global(p))
    return {
        "name": prog_name,
        "version": __version__,
        "description": tree["description"],
        "usage": tree["usage"],
        "global_flags": global_flags,
        "exit_codes": [{"code": int(code), "meaning": meaning} for code, meaning in sorted(EXIT_CODE_MEANINGS.items())],
        "examples": tree["examples"],
        "commands": tree["commands"],
    }
