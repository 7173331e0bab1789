"""Token cache: reuse a stored access token or refresh and persist a new one."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from imscli.core.auth.client import mask_token, utcnow
from imscli.core.auth.provider import TokenExchanger
from imscli.core.context.store import ContextStore
from imscli.core.errors import AuthenticationRequired
from imscli.models.context import TokenRecord
from imscli.utils.state import DEFAULT_TOKEN_MARGIN

logger = logging.getLogger(__name__)


def is_usable(
    record: TokenRecord | None,
    now: datetime,
    margin: timedelta = DEFAULT_TOKEN_MARGIN,
) -> bool:
    """Return True iff ``record`` exists and ``now < expires_at - margin``."""
    return record is not None and record.is_usable(now, margin)


class TokenCache:
    """Hands out access tokens for named contexts.

    ``get_token`` may write to the store: when the cached access token is
    no longer usable and a usable refresh token exists, the freshly minted
    tokens are persisted before the new value is returned.
    """

    def __init__(
        self,
        store: ContextStore,
        exchanger: TokenExchanger,
        *,
        safety_margin: timedelta = DEFAULT_TOKEN_MARGIN,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.exchanger = exchanger
        self.safety_margin = safety_margin
        self.clock = clock

    def get_token(self, context_name: str | None) -> str:
        """Return a usable access token for the context.

        Raises ContextNotConfigured if the context is missing,
        AuthenticationRequired if neither token is usable, and lets
        ExchangeFailed from the exchanger propagate unchanged.
        """
        context = self.store.resolve(context_name)
        now = self.clock()

        if is_usable(context.access_token, now, self.safety_margin):
            logger.debug("Using cached access token for context %s", context.name)
            assert context.access_token is not None
            return context.access_token.value

        if not is_usable(context.refresh_token, now, self.safety_margin):
            raise AuthenticationRequired(context.name)

        assert context.refresh_token is not None
        logger.debug(
            "Access token for context %s expired; refreshing with %s",
            context.name,
            mask_token(context.refresh_token.value),
        )
        grant = self.exchanger.refresh(context, context.refresh_token.value)

        updates: dict[str, Any] = {"access_token": grant.access_token}
        if grant.refresh_token is not None:
            updates["refresh_token"] = grant.refresh_token
        self.store.persist(context.name, **updates)
        logger.info("Refreshed access token for context %s", context.name)
        return grant.access_token.value
