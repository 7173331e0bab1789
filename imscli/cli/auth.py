"""Token CLI commands: token, login, logout, unlock."""

from __future__ import annotations

import base64
import json
import sys
from typing import Any

import click
from rich.markup import escape

from imscli.cli.runtime import runtime_from_context
from imscli.core.errors import ImsCliError
from imscli.ui.console import err_console
from imscli.ui.echo import print_object
from imscli.utils.locks import clear_store_lock


def decode_jwt_claims(token: str) -> dict[str, Any]:
    """Decode the claims of a JWT without verifying its signature.

    Raises ValueError if the token is not a JWT.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError("Access token is not a JWT")
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
    except (ValueError, UnicodeError) as exc:
        raise ValueError("Access token is not a JWT") from exc
    if not isinstance(claims, dict):
        raise ValueError("Access token is not a JWT")
    return claims


@click.command("token")
@click.option("--decode", is_flag=True, help="Print the token's JWT claims instead of the token")
@click.pass_context
def token_cmd(ctx: click.Context, decode: bool) -> None:
    """Print a valid access token for the selected context.

    Refreshes and stores a new access token if the cached one has expired.
    """
    runtime = runtime_from_context(ctx)
    try:
        token = runtime.tokens.get_token(ctx.obj.get("ctx"))
        if decode:
            print_object(decode_jwt_claims(token), ctx.obj.get("format", "json"))
            return
    except (ImsCliError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(token)


@click.command("login")
@click.option("--code", required=True, help="Authorization code obtained from the IMS login page")
@click.pass_context
def login_cmd(ctx: click.Context, code: str) -> None:
    """Exchange an authorization code for tokens and store them."""
    runtime = runtime_from_context(ctx)
    try:
        context = runtime.store.resolve(ctx.obj.get("ctx"))
        if not context.client_id:
            raise ValueError(
                f"IMS context '{context.name}' has no client_id. "
                f"Set one with `ims context set {context.name} client_id=<id>`."
            )
        grant = runtime.client.authorize(context, code)
        runtime.store.persist(
            context.name,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
        )
    except (ImsCliError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Logged in to IMS context '{context.name}'.")


@click.command("logout")
@click.option(
    "--force",
    is_flag=True,
    help="Remove stored tokens even if IMS cannot invalidate them",
)
@click.pass_context
def logout_cmd(ctx: click.Context, force: bool) -> None:
    """Invalidate the context's tokens at IMS and remove them locally."""
    runtime = runtime_from_context(ctx)
    try:
        context = runtime.store.resolve(ctx.obj.get("ctx"))
    except (ImsCliError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    for token_type in ("refresh_token", "access_token"):
        record = getattr(context, token_type)
        if record is None:
            continue
        try:
            runtime.client.invalidate(context, record.value, token_type)
        except ImsCliError as exc:
            if not force:
                click.echo(
                    f"Error: could not invalidate {token_type}: {exc}. "
                    "Use --force to remove it locally anyway.",
                    err=True,
                )
                sys.exit(1)
            err_console.print(
                f"[warning]Warning:[/warning] could not invalidate {token_type}: {escape(str(exc))}"
            )

    try:
        runtime.store.persist(context.name, access_token=None, refresh_token=None)
    except ImsCliError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Logged out of IMS context '{context.name}'.")


@click.command("unlock")
@click.option("--force", is_flag=True, help="Remove the lock even if its holder is alive")
@click.pass_context
def unlock_cmd(ctx: click.Context, force: bool) -> None:
    """Remove a leftover context store lock."""
    runtime = runtime_from_context(ctx)
    try:
        clear_store_lock(runtime.store.lock_path, force=force)
    except ImsCliError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo("Context store lock cleared.")
