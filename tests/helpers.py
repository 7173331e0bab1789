"""Test helpers for building contexts, tokens and fake IMS collaborators."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx

from imscli.core.auth.provider import TokenGrant
from imscli.core.context.store import ContextStore
from imscli.models.context import ImsContext, TokenRecord

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)
MARGIN = timedelta(seconds=60)


def make_token(value: str, expires_in: timedelta, *, now: datetime = NOW) -> TokenRecord:
    """Create a token expiring ``expires_in`` after ``now`` (negative = expired)."""
    return TokenRecord(value=value, expires_at=now + expires_in)


def seed_context(
    store: ContextStore,
    name: str = "dev",
    *,
    access: TokenRecord | None = None,
    refresh: TokenRecord | None = None,
    **fields: Any,
) -> ImsContext:
    """Create a context with client credentials and the given tokens."""
    fields.setdefault("client_id", "client-123")
    fields.setdefault("client_secret", "secret-456")
    return store.upsert(name, access_token=access, refresh_token=refresh, **fields)


@dataclass
class FakeExchanger:
    """TokenExchanger double recording every exchange."""

    grant: TokenGrant | None = None
    error: Exception | None = None
    refresh_calls: list[tuple[str, str]] = field(default_factory=list)
    authorize_calls: list[tuple[str, str]] = field(default_factory=list)

    def refresh(self, context: ImsContext, refresh_token: str) -> TokenGrant:
        self.refresh_calls.append((context.name, refresh_token))
        return self._result()

    def authorize(self, context: ImsContext, code: str) -> TokenGrant:
        self.authorize_calls.append((context.name, code))
        return self._result()

    def _result(self) -> TokenGrant:
        if self.error is not None:
            raise self.error
        assert self.grant is not None
        return self.grant


def persist_worker(store_path: str, writer: str, rounds: int) -> None:
    """Repeatedly persist tokens for one context; run in a child process."""
    store = ContextStore(Path(store_path), lock_timeout=30.0)
    for i in range(rounds):
        store.persist(
            "shared",
            access_token=TokenRecord(
                value=f"{writer}-{i}-" + "x" * 512,
                expires_at=NOW + timedelta(hours=1),
            ),
            extra={"writer": writer, "round": str(i)},
        )


def json_response(status: int, payload: object) -> httpx.Response:
    """Build an httpx response carrying a JSON body."""
    return httpx.Response(
        status,
        content=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )
