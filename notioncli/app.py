"""Root ``notion`` command tree."""

from __future__ import annotations

from typing import Annotated

import typer

from notioncli import __version__
from notioncli.command import ROOT_COMMAND_NAME, NotionTyper
from notioncli.commands import (
    blocks,
    comments,
    config,
    data_sources,
    databases,
    file_uploads,
    oauth,
    ops,
    pages,
    users,
)
from notioncli.commands.request import request
from notioncli.commands.search import search

app = NotionTyper(name=ROOT_COMMAND_NAME, help="Notion CLI for coding agents.")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def root(
    version: Annotated[
        bool,
        typer.Option("--version", is_eager=True, callback=_print_version, help="Print the version and exit."),
    ] = False,
) -> None:
    """Notion CLI for coding agents.

    Every command prints exactly one JSON envelope on stdout and exits with a
    stable code; diagnostics go to stderr.
    """


app.add_typer(oauth.app)
app.add_typer(users.app)
app.command("search")(search)
app.add_typer(pages.app)
app.add_typer(blocks.app)
app.add_typer(databases.app)
app.add_typer(data_sources.app)
app.add_typer(comments.app)
app.add_typer(file_uploads.app)
app.add_typer(ops.app)
app.command("request")(request)
app.add_typer(config.app)


def main() -> None:
    app(prog_name=ROOT_COMMAND_NAME)
