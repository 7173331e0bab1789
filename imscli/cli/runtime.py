"""Per-invocation wiring of the context store, IMS client and token cache."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import click

from imscli.core.auth.client import ImsClient
from imscli.core.auth.tokens import TokenCache
from imscli.core.context.store import ContextStore
from imscli.utils.state import context_store_path, resolve_root, token_margin


@dataclass(frozen=True)
class Runtime:
    """Collaborators shared by every command of one CLI invocation."""

    store: ContextStore
    client: ImsClient
    tokens: TokenCache


def build_runtime(root: str | Path | None, client: ImsClient | None = None) -> Runtime:
    """Wire the store, client and token cache for a state root.

    Raises ValueError if the token margin override is invalid.
    """
    store = ContextStore(context_store_path(resolve_root(root)))
    ims_client = client or ImsClient()
    tokens = TokenCache(store, ims_client, safety_margin=token_margin())
    return Runtime(store=store, client=ims_client, tokens=tokens)


def runtime_from_context(ctx: click.Context) -> Runtime:
    """Return the runtime for the current click invocation, building it once.

    A pre-built ``ImsClient`` may be supplied as ``obj["client"]``.
    """
    obj = ctx.ensure_object(dict)
    runtime = obj.get("runtime")
    if runtime is None:
        try:
            runtime = build_runtime(obj.get("root"), obj.get("client"))
        except ValueError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)
        obj["runtime"] = runtime
    return runtime
