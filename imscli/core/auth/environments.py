"""IMS environment endpoints and token lifetime constants."""

from __future__ import annotations

from datetime import timedelta

from imscli.models.context import ImsContext, ImsEnvironment

IMS_BASE_URLS: dict[ImsEnvironment, str] = {
    ImsEnvironment.PROD: "https://ims-na1.adobelogin.com",
    ImsEnvironment.STAGE: "https://ims-na1-stg1.adobelogin.com",
}

API_PREFIX = "/ims/"
TOKEN_ENDPOINT = "/ims/token/v3"
INVALIDATE_ENDPOINT = "/ims/invalidate_token/v2"

# Used when IMS grants a refresh token without stating its lifetime.
DEFAULT_REFRESH_TOKEN_LIFETIME = timedelta(days=14)

BASE_URL_EXTRA_KEY = "base_url"


def base_url_for(context: ImsContext) -> str:
    """Return the IMS base URL for a context; ``extra.base_url`` wins."""
    override = context.extra.get(BASE_URL_EXTRA_KEY)
    if override:
        return override.rstrip("/")
    return IMS_BASE_URLS[context.env]
