"""Pydantic data models for ims-cli."""

from imscli.models.context import (
    STORE_SCHEMA_VERSION,
    ApiInvocation,
    ContextStoreData,
    HttpMethod,
    ImsContext,
    ImsEnvironment,
    TokenRecord,
)

__all__ = [
    "STORE_SCHEMA_VERSION",
    # Context
    "ImsEnvironment",
    "ImsContext",
    "ContextStoreData",
    "TokenRecord",
    # Invocation
    "HttpMethod",
    "ApiInvocation",
]
