"""Token exchanger protocol consumed by the token cache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from imscli.models.context import ImsContext, TokenRecord


@dataclass(frozen=True)
class TokenGrant:
    """Tokens returned by a successful exchange."""

    access_token: TokenRecord
    refresh_token: TokenRecord | None = None


@runtime_checkable
class TokenExchanger(Protocol):
    """Abstract interface for minting tokens at the identity provider.

    Implementations must raise ExchangeFailed with a TRANSIENT reason for
    failures that are safe to retry (timeouts, network errors, 5xx) and a
    PERMANENT reason for definitive rejections (invalid or revoked grants).
    """

    def refresh(self, context: ImsContext, refresh_token: str) -> TokenGrant:
        """Exchange a refresh token for a new access token."""
        ...

    def authorize(self, context: ImsContext, code: str) -> TokenGrant:
        """Exchange an authorization code for an access and refresh token."""
        ...
