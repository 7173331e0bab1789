"""HTTP client for the IMS token endpoints and raw IMS API calls.

No IMS SDK dependency -- uses httpx directly.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from imscli.core.auth.environments import (
    DEFAULT_REFRESH_TOKEN_LIFETIME,
    INVALIDATE_ENDPOINT,
    TOKEN_ENDPOINT,
    base_url_for,
)
from imscli.core.auth.provider import TokenGrant
from imscli.core.errors import (
    ApiError,
    ApiNotFound,
    ExchangeFailed,
    ExchangeFailure,
    TransportError,
)
from imscli.models.context import ApiInvocation, HttpMethod, ImsContext, TokenRecord
from imscli.utils.state import DEFAULT_HTTP_TIMEOUT

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


def mask_token(value: str | None) -> str:
    """Return a loggable form of a secret value."""
    if not value:
        return "<none>"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}...{value[-4:]}"


class ImsClient:
    """Talks to one IMS deployment over HTTP.

    Implements the TokenExchanger protocol and performs raw API calls.
    ``transport`` is passed through to httpx and lets tests mount a
    ``httpx.MockTransport``.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.timeout = timeout
        self.transport = transport
        self.clock = clock

    def _client(self, context: ImsContext) -> httpx.Client:
        return httpx.Client(
            base_url=base_url_for(context),
            timeout=self.timeout,
            transport=self.transport,
        )

    # -- token exchange ------------------------------------------------------

    def refresh(self, context: ImsContext, refresh_token: str) -> TokenGrant:
        """Exchange a refresh token for a new access token."""
        form = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            **_client_credentials(context),
        }
        return self._exchange(context, form)

    def authorize(self, context: ImsContext, code: str) -> TokenGrant:
        """Exchange an authorization code for an access and refresh token."""
        form = {
            "grant_type": "authorization_code",
            "code": code,
            **_client_credentials(context),
        }
        return self._exchange(context, form)

    def _exchange(self, context: ImsContext, form: dict[str, str]) -> TokenGrant:
        grant_type = form["grant_type"]
        logger.debug("Token exchange %s for context %s", grant_type, context.name)
        try:
            with self._client(context) as client:
                response = client.post(TOKEN_ENDPOINT, data=form)
        except httpx.TimeoutException as exc:
            raise ExchangeFailed(
                f"Token exchange timed out after {self.timeout:g}s: {exc}",
                reason=ExchangeFailure.TRANSIENT,
            ) from exc
        except httpx.HTTPError as exc:
            raise ExchangeFailed(
                f"Token exchange failed: {exc or type(exc).__name__}",
                reason=ExchangeFailure.TRANSIENT,
            ) from exc
        except httpx.InvalidURL as exc:
            raise ExchangeFailed(
                f"Invalid IMS URL for context {context.name!r}: {exc}",
                reason=ExchangeFailure.PERMANENT,
            ) from exc

        if response.status_code >= 400:
            body = _decode_body(response)
            detail = _describe(body) or response.reason_phrase
            reason = _classify_status(response.status_code)
            logger.debug(
                "Token exchange %s rejected with status %d (%s)",
                grant_type,
                response.status_code,
                reason,
            )
            raise ExchangeFailed(
                f"IMS rejected the {grant_type} exchange "
                f"(HTTP {response.status_code}): {detail}.",
                reason=reason,
            )

        return self._parse_grant(_decode_body(response))

    def _parse_grant(self, body: Any) -> TokenGrant:
        if not isinstance(body, dict) or not body.get("access_token"):
            raise ExchangeFailed(
                "IMS token response did not contain an access token.",
                reason=ExchangeFailure.PERMANENT,
            )
        now = self.clock()
        try:
            # IMS reports lifetimes in milliseconds.
            access_expires = now + timedelta(milliseconds=int(body["expires_in"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ExchangeFailed(
                "IMS token response did not contain a valid expires_in.",
                reason=ExchangeFailure.PERMANENT,
            ) from exc

        refresh: TokenRecord | None = None
        if body.get("refresh_token"):
            lifetime = DEFAULT_REFRESH_TOKEN_LIFETIME
            raw_lifetime = body.get("refresh_token_expires_in")
            if raw_lifetime is not None:
                try:
                    lifetime = timedelta(milliseconds=int(raw_lifetime))
                except (TypeError, ValueError):
                    logger.warning(
                        "Ignoring invalid refresh_token_expires_in %r", raw_lifetime
                    )
            refresh = TokenRecord(value=body["refresh_token"], expires_at=now + lifetime)

        access = TokenRecord(value=body["access_token"], expires_at=access_expires)
        logger.debug(
            "Received access token %s expiring %s",
            mask_token(access.value),
            access.expires_at.isoformat(),
        )
        return TokenGrant(access_token=access, refresh_token=refresh)

    def invalidate(self, context: ImsContext, token: str, token_type: str) -> None:
        """Invalidate an access or refresh token at IMS.

        Raises ApiError on rejection and TransportError on network failure.
        """
        form = {
            "token": token,
            "token_type": token_type,
            "cascading": "all",
            **_client_credentials(context),
        }
        try:
            with self._client(context) as client:
                response = client.post(INVALIDATE_ENDPOINT, data=form)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc
        _raise_for_status(response)

    # -- raw API calls -------------------------------------------------------

    def call(self, context: ImsContext, invocation: ApiInvocation) -> Any:
        """Perform a raw IMS API call and return the decoded response body."""
        headers = {"Authorization": f"Bearer {invocation.token}"}
        if context.client_id:
            headers["x-api-key"] = context.client_id
        logger.debug(
            "%s %s params=%s token=%s",
            invocation.method,
            invocation.api,
            sorted(invocation.params),
            mask_token(invocation.token),
        )
        try:
            with self._client(context) as client:
                if invocation.method is HttpMethod.POST:
                    response = client.post(
                        invocation.api, data=invocation.params, headers=headers
                    )
                else:
                    response = client.get(
                        invocation.api, params=invocation.params, headers=headers
                    )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        _raise_for_status(response)
        return _decode_body(response)


def _client_credentials(context: ImsContext) -> dict[str, str]:
    creds: dict[str, str] = {}
    if context.client_id:
        creds["client_id"] = context.client_id
    if context.client_secret:
        creds["client_secret"] = context.client_secret
    if context.scope:
        creds["scope"] = context.scope
    return creds


def _classify_status(status_code: int) -> ExchangeFailure:
    if status_code == 429 or status_code >= 500:
        return ExchangeFailure.TRANSIENT
    return ExchangeFailure.PERMANENT


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    body = _decode_body(response)
    if response.status_code == 404:
        raise ApiNotFound("API does not exist", status_code=404, body=body)
    message = _describe(body) or f"HTTP {response.status_code} {response.reason_phrase}"
    raise ApiError(message, status_code=response.status_code, body=body)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _describe(body: Any) -> str | None:
    if isinstance(body, dict):
        for key in ("error_description", "error", "message"):
            value = body.get(key)
            if value:
                return str(value)
    return None
