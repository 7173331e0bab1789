"""Shared filesystem state path helpers."""

from __future__ import annotations

import math
import os
from datetime import timedelta
from pathlib import Path

DEFAULT_ROOT = Path.home() / ".ims-cli"

ROOT_ENVVAR = "IMS_CLI_ROOT"
CONTEXT_ENVVAR = "IMS_CONTEXT"
TOKEN_MARGIN_ENVVAR = "IMS_CLI_TOKEN_MARGIN"

DEFAULT_TOKEN_MARGIN = timedelta(seconds=60)
DEFAULT_LOCK_TIMEOUT = 10.0
DEFAULT_HTTP_TIMEOUT = 30.0


def resolve_root(root: str | Path | None = None) -> Path:
    """Resolve the canonical state root path."""
    if root is None:
        return DEFAULT_ROOT
    return Path(root)


def root_path(root: str | Path | None, *parts: str) -> Path:
    """Resolve a child path within the canonical state root."""
    resolved = resolve_root(root)
    for part in parts:
        resolved = resolved / part
    return resolved


def context_store_path(root: str | Path | None) -> Path:
    """Return the context store document path for a root."""
    return root_path(root, "contexts.json")


def store_lock_path(store_path: Path) -> Path:
    """Return the writer lock path guarding a store document."""
    return store_path.with_name(f"{store_path.name}.lock")


def token_margin(environ: dict[str, str] | None = None) -> timedelta:
    """Return the token safety margin, honouring ``IMS_CLI_TOKEN_MARGIN``.

    Raises ValueError if the override is not a finite, non-negative number
    of seconds.
    """
    env = os.environ if environ is None else environ
    raw = env.get(TOKEN_MARGIN_ENVVAR)
    if raw is None or not raw.strip():
        return DEFAULT_TOKEN_MARGIN
    seconds = float(raw)
    if not math.isfinite(seconds):
        raise ValueError(
            f"{TOKEN_MARGIN_ENVVAR} must be a finite number of seconds, got {raw!r}"
        )
    if seconds < 0:
        raise ValueError(f"{TOKEN_MARGIN_ENVVAR} must not be negative, got {raw!r}")
    return timedelta(seconds=seconds)
