"""Named authentication context storage."""

from imscli.core.context.store import (
    ContextStore,
    ContextStoreError,
    validate_context_name,
)

__all__ = [
    "ContextStore",
    "ContextStoreError",
    "validate_context_name",
]
