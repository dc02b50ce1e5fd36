"""OAuth endpoints."""

from __future__ import annotations

import base64
from typing import Annotated, Any

import typer

from notioncli.command import NotionTyper
from notioncli.commands._common import call, compact, context, json_option, validate
from notioncli.errors import InputError
from notioncli.schema import OAuthTokenBody, OAuthTokenRefBody

app = NotionTyper(name="oauth", help="OAuth endpoints.")

ClientId = Annotated[str | None, typer.Option("--client-id", help="OAuth client id.")]
ClientSecret = Annotated[str | None, typer.Option("--client-secret", help="OAuth client secret.")]


def basic_auth(client_id: str | None, client_secret: str | None) -> dict[str, str] | None:
    """Return the ``Authorization: Basic`` header for the client credentials."""

    if client_id is None and client_secret is None:
        return None
    if not client_id or not client_secret:
        raise InputError(
            "Both --client-id and --client-secret are required",
            suggested_action="Provide --client-id and --client-secret together",
        )
    encoded = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode("ascii")
    return {"Authorization": f"Basic {encoded}"}


def _external_account(value: str | None) -> Any:
    if value is None or not (value == "-" or value.startswith(("{", "@"))):
        return value
    return json_option(value, "--external-account")


@app.command("token")
def token(
    ctx: typer.Context,
    grant_type: Annotated[str, typer.Option("--grant-type", help="authorization_code or refresh_token.")],
    code: Annotated[str | None, typer.Option("--code", help="Authorization code.")] = None,
    redirect_uri: Annotated[str | None, typer.Option("--redirect-uri", help="Redirect URI.")] = None,
    refresh_token: Annotated[str | None, typer.Option("--refresh-token", help="Refresh token.")] = None,
    external_account: Annotated[
        str | None, typer.Option("--external-account", help="External account id or JSON object.")
    ] = None,
    client_id: ClientId = None,
    client_secret: ClientSecret = None,
) -> Any:
    """Exchange an authorization code or refresh token for an access token."""
    cc = context(ctx)
    body = compact(
        {
            "grant_type": grant_type,
            "code": code,
            "redirect_uri": redirect_uri,
            "refresh_token": refresh_token,
            "external_account": _external_account(external_account),
        }
    )
    validate(cc, OAuthTokenBody, body)
    return call(cc, "POST", "/oauth/token", body=body, extra_headers=basic_auth(client_id, client_secret))


@app.command("introspect")
def introspect(
    ctx: typer.Context,
    token_: Annotated[str, typer.Option("--token", help="Token to introspect.")],
    client_id: ClientId = None,
    client_secret: ClientSecret = None,
) -> Any:
    """Introspect an OAuth access token."""
    cc = context(ctx)
    body = {"token": token_}
    validate(cc, OAuthTokenRefBody, body)
    return call(cc, "POST", "/oauth/introspect", body=body, extra_headers=basic_auth(client_id, client_secret))


@app.command("revoke")
def revoke(
    ctx: typer.Context,
    token_: Annotated[str, typer.Option("--token", help="Token to revoke.")],
    client_id: ClientId = None,
    client_secret: ClientSecret = None,
) -> Any:
    """Revoke an OAuth access token."""
    cc = context(ctx)
    body = {"token": token_}
    validate(cc, OAuthTokenRefBody, body)
    return call(cc, "POST", "/oauth/revoke", body=body, extra_headers=basic_auth(client_id, client_secret))
