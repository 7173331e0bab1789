"""Context management CLI commands."""

from __future__ import annotations

import sys
from typing import Any

import click

from imscli.cli.runtime import runtime_from_context
from imscli.core.errors import ImsCliError
from imscli.models.context import ImsContext, ImsEnvironment
from imscli.ui.echo import context_view, echo_contexts, print_object

# Keys of ``ims context set`` that map to context fields; others go to ``extra``.
CONTEXT_FIELDS = ("env", "client_id", "client_secret", "scope")


def build_context_updates(existing: ImsContext | None, pairs: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``key=value`` pairs into context field updates.

    An empty value clears the field (``env`` falls back to prod) or removes
    the ``extra`` key.
    """
    updates: dict[str, Any] = {}
    extra = dict(existing.extra) if existing else {}
    touched_extra = False
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got '{pair}'")
        if key == "env":
            updates[key] = value or ImsEnvironment.PROD
        elif key in CONTEXT_FIELDS:
            updates[key] = value or None
        else:
            touched_extra = True
            if value:
                extra[key] = value
            else:
                extra.pop(key, None)
    if touched_extra:
        updates["extra"] = extra
    return updates


@click.group("context")
def context_group() -> None:
    """Manage named IMS authentication contexts."""


@context_group.command("list")
@click.pass_context
def context_list(ctx: click.Context) -> None:
    """List configured contexts; the current one is marked with '*'."""
    runtime = runtime_from_context(ctx)
    try:
        echo_contexts(runtime.store.list_contexts(), runtime.store.current_name())
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@context_group.command("show")
@click.argument("name", required=False)
@click.option("--reveal", is_flag=True, help="Show secrets and token values unmasked")
@click.pass_context
def context_show(ctx: click.Context, name: str | None, reveal: bool) -> None:
    """Print a context (default: the selected one) as an object."""
    runtime = runtime_from_context(ctx)
    try:
        context = runtime.store.resolve(name or ctx.obj.get("ctx"))
    except (ImsCliError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    print_object(context_view(context, reveal=reveal), ctx.obj.get("format", "json"))


@context_group.command("set")
@click.argument("name")
@click.argument("values", nargs=-1, required=True)
@click.pass_context
def context_set(ctx: click.Context, name: str, values: tuple[str, ...]) -> None:
    """Create or update a context from key=value pairs.

    \b
    Known keys: env (prod|stage), client_id, client_secret, scope.
    Any other key is stored as extra metadata (e.g. base_url=...).

    \b
    Examples:
      ims context set dev env=stage client_id=abc client_secret=s3cr3t
      ims context set dev base_url=https://ims.example.test
    """
    runtime = runtime_from_context(ctx)
    store = runtime.store
    try:
        existing = store.resolve(name) if store.exists(name) else None
        updates = build_context_updates(existing, values)
        store.upsert(name, **updates)
    except (ImsCliError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Context '{name}' saved.")


@context_group.command("select")
@click.argument("name")
@click.pass_context
def context_select(ctx: click.Context, name: str) -> None:
    """Make NAME the current context."""
    runtime = runtime_from_context(ctx)
    try:
        runtime.store.select(name)
    except (ImsCliError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Current context is now '{name}'.")


@context_group.command("remove")
@click.argument("name")
@click.pass_context
def context_remove(ctx: click.Context, name: str) -> None:
    """Delete a context and its cached tokens."""
    runtime = runtime_from_context(ctx)
    try:
        removed = runtime.store.remove(name)
    except (ImsCliError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if not removed:
        click.echo(f"Context '{name}' not found.", err=True)
        sys.exit(1)
    click.echo(f"Context '{name}' removed.")
