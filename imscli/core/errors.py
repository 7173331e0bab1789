"""Error taxonomy shared by the store, the token cache and the commands.

Every error carries an :class:`ErrorKind` tag so the command layer can map
failures to messages and exit status without inspecting exception types.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Stable error-kind vocabulary."""

    CONTEXT_NOT_CONFIGURED = "context_not_configured"
    INVALID_API = "invalid_api"
    AUTHENTICATION_REQUIRED = "authentication_required"
    API_NOT_FOUND = "api_not_found"
    API_ERROR = "api_error"
    TRANSPORT_ERROR = "transport_error"
    EXCHANGE_FAILED = "exchange_failed"
    STORE_LOCK = "store_lock"


class ExchangeFailure(StrEnum):
    """Whether a failed token exchange may be retried by the caller."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"


class ImsCliError(RuntimeError):
    """Base class for all classified ims-cli failures."""

    kind: ErrorKind = ErrorKind.TRANSPORT_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ContextNotConfigured(ImsCliError):
    """Raised when no context is selected or the named context is absent."""

    kind = ErrorKind.CONTEXT_NOT_CONFIGURED

    def __init__(self, name: str | None) -> None:
        if name:
            message = f"IMS context '{name}' is not configured"
        else:
            message = (
                "No current IMS context is selected. "
                "Use --ctx or `ims context select <name>`."
            )
        super().__init__(message)
        self.name = name


class InvalidApi(ImsCliError):
    """Raised for API paths outside the IMS namespace or malformed parameters."""

    kind = ErrorKind.INVALID_API


class AuthenticationRequired(ImsCliError):
    """Raised when neither the access nor the refresh token is usable."""

    kind = ErrorKind.AUTHENTICATION_REQUIRED

    def __init__(self, name: str) -> None:
        super().__init__(
            f"No valid token for IMS context '{name}'. "
            f"Run `ims --ctx {name} login --code <code>` to log in again."
        )
        self.name = name


class ApiError(ImsCliError):
    """Raised when IMS answers with a non-success HTTP status."""

    kind = ErrorKind.API_ERROR

    def __init__(self, message: str, *, status_code: int, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ApiNotFound(ApiError):
    """Raised when IMS answers 404 for the requested API."""

    kind = ErrorKind.API_NOT_FOUND


class TransportError(ImsCliError):
    """Raised when the request never produced an HTTP response."""

    kind = ErrorKind.TRANSPORT_ERROR


class ExchangeFailed(ImsCliError):
    """Raised when a token exchange with IMS fails."""

    kind = ErrorKind.EXCHANGE_FAILED

    def __init__(self, message: str, *, reason: ExchangeFailure) -> None:
        if reason is ExchangeFailure.PERMANENT:
            message = f"{message} Log in again with `ims login --code <code>`."
        super().__init__(message)
        self.reason = reason

    @property
    def retryable(self) -> bool:
        return self.reason is ExchangeFailure.TRANSIENT


class StoreLockError(ImsCliError):
    """Raised when the context store lock cannot be acquired in time."""

    kind = ErrorKind.STORE_LOCK
