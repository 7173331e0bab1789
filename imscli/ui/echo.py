"""Result rendering for command output.

Results go to stdout; listings of contexts go to stderr like other chrome.
"""

from __future__ import annotations

import json
from typing import Any

import click
import yaml
from rich.console import Console

from imscli.core.auth.client import mask_token
from imscli.models.context import ImsContext
from imscli.ui.console import err_console

OUTPUT_FORMATS = ("json", "yaml")


def render_object(obj: Any, fmt: str = "json") -> str:
    """Render an API result or model dump as JSON or YAML."""
    if fmt == "yaml":
        return yaml.safe_dump(obj, sort_keys=True, default_flow_style=False).rstrip("\n")
    return json.dumps(obj, indent=2, default=str)


def print_object(obj: Any, fmt: str = "json") -> None:
    """Print a result object on stdout. Plain strings are printed as-is."""
    if isinstance(obj, str):
        click.echo(obj)
        return
    click.echo(render_object(obj, fmt))


def context_view(context: ImsContext, *, reveal: bool = False) -> dict[str, Any]:
    """Return a printable dict of a context, masking secrets unless ``reveal``."""
    view = context.model_dump(mode="json")
    if reveal:
        return view
    if view.get("client_secret"):
        view["client_secret"] = mask_token(view["client_secret"])
    for key in ("access_token", "refresh_token"):
        token = view.get(key)
        if token:
            token["value"] = mask_token(token["value"])
    return view


def echo_contexts(
    contexts: list[ImsContext],
    current: str | None,
    *,
    console: Console | None = None,
) -> None:
    """Display configured contexts, marking the current one. Goes to stderr."""
    con = console or err_console
    if not contexts:
        con.print("No IMS contexts configured.")
        return
    con.print("[heading]IMS contexts:[/heading]")
    for context in contexts:
        marker = "[current]*[/current]" if context.name == current else " "
        has_token = "token" if context.access_token else "no token"
        con.print(f"  {marker} {context.name}  ({context.env}, {has_token})")
