"""Token acquisition, validation and refresh."""

from imscli.core.auth.client import ImsClient, mask_token
from imscli.core.auth.provider import TokenExchanger, TokenGrant
from imscli.core.auth.tokens import TokenCache, is_usable

__all__ = [
    "ImsClient",
    "TokenCache",
    "TokenExchanger",
    "TokenGrant",
    "is_usable",
    "mask_token",
]
