"""Context and token models persisted by the context store."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

STORE_SCHEMA_VERSION = 1


class ImsEnvironment(StrEnum):
    """IMS deployment an authentication context talks to."""

    PROD = "prod"
    STAGE = "stage"


class HttpMethod(StrEnum):
    """Methods supported by the raw API call commands."""

    GET = "GET"
    POST = "POST"


class TokenRecord(BaseModel):
    """An opaque token value with its declared expiry."""

    value: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        # Naive timestamps in the store are treated as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def is_usable(self, now: datetime, margin: timedelta) -> bool:
        """Return True iff the token is still valid ``margin`` from ``now``."""
        return now < self.expires_at - margin


class ImsContext(BaseModel):
    """A named bundle of environment, client credentials and cached tokens."""

    name: str
    env: ImsEnvironment = ImsEnvironment.PROD
    client_id: str | None = None
    client_secret: str | None = None
    scope: str | None = None
    access_token: TokenRecord | None = None
    refresh_token: TokenRecord | None = None
    extra: dict[str, str] = Field(default_factory=dict)


class ContextStoreData(BaseModel):
    """The whole persisted document: every context plus the current pointer."""

    version: int = STORE_SCHEMA_VERSION
    current: str | None = None
    contexts: dict[str, ImsContext] = Field(default_factory=dict)


class ApiInvocation(BaseModel):
    """One raw IMS API call. Lives only for the duration of the call."""

    api: str
    method: HttpMethod = HttpMethod.GET
    params: dict[str, str] = Field(default_factory=dict)
    token: str
