"""Context store: named IMS authentication contexts persisted as one JSON document.

The document lives at ``<root>/contexts.json`` and holds every context plus
the name of the current one. Readers load it without locking; writers take
the store lock, re-read, replace whole records and write the document back
atomically, so a reader sees either the old or the new document and two
writers never interleave.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from imscli.core.errors import ContextNotConfigured
from imscli.models.context import ContextStoreData, ImsContext
from imscli.utils.files import atomic_write_text
from imscli.utils.locks import store_write_lock
from imscli.utils.state import DEFAULT_LOCK_TIMEOUT, store_lock_path

logger = logging.getLogger(__name__)

_SECURE_MODE = 0o600


class ContextStoreError(ValueError):
    """Raised when the persisted document cannot be parsed."""


class ContextStore:
    """Reads and writes named contexts in a single store document."""

    def __init__(self, path: Path, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self.path = path
        self.lock_path = store_lock_path(path)
        self.lock_timeout = lock_timeout

    # -- reads ---------------------------------------------------------------

    def load(self) -> ContextStoreData:
        """Load the whole document. A missing file is an empty store."""
        if not self.path.exists():
            return ContextStoreData()
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return ContextStoreData()
        try:
            return ContextStoreData.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ContextStoreError(f"Invalid context store {self.path}: {exc}") from exc

    def resolve(self, name: str | None = None) -> ImsContext:
        """Return a copy of the named context, or of the current one if name is None.

        Raises ContextNotConfigured if nothing is selected or the entry is absent.
        """
        data = self.load()
        target = name or data.current
        if not target or target not in data.contexts:
            raise ContextNotConfigured(target)
        return data.contexts[target].model_copy(deep=True)

    def current_name(self) -> str | None:
        return self.load().current

    def list_contexts(self) -> list[ImsContext]:
        data = self.load()
        return [data.contexts[name].model_copy(deep=True) for name in sorted(data.contexts)]

    def exists(self, name: str) -> bool:
        return name in self.load().contexts

    # -- writes --------------------------------------------------------------

    def persist(self, name: str, **updates: Any) -> ImsContext:
        """Replace the stored record for ``name`` with ``updates`` applied.

        Raises ContextNotConfigured if the context does not exist.
        """
        with store_write_lock(self.lock_path, "persist", timeout=self.lock_timeout):
            data = self.load()
            if name not in data.contexts:
                raise ContextNotConfigured(name)
            record = _apply(data.contexts[name], updates)
            data.contexts[name] = record
            self._write(data)
        logger.debug("Persisted context %s fields=%s", name, sorted(updates))
        return record.model_copy(deep=True)

    def upsert(self, name: str, **fields: Any) -> ImsContext:
        """Create or update a context. The first context becomes current."""
        validate_context_name(name)
        with store_write_lock(self.lock_path, "upsert", timeout=self.lock_timeout):
            data = self.load()
            existing = data.contexts.get(name) or ImsContext(name=name)
            record = _apply(existing, fields)
            data.contexts[name] = record
            if data.current is None:
                data.current = name
            self._write(data)
        return record.model_copy(deep=True)

    def select(self, name: str) -> None:
        """Make ``name`` the current context."""
        with store_write_lock(self.lock_path, "select", timeout=self.lock_timeout):
            data = self.load()
            if name not in data.contexts:
                raise ContextNotConfigured(name)
            data.current = name
            self._write(data)

    def remove(self, name: str) -> bool:
        """Delete a context. Returns True if it existed."""
        with store_write_lock(self.lock_path, "remove", timeout=self.lock_timeout):
            data = self.load()
            if name not in data.contexts:
                return False
            del data.contexts[name]
            if data.current == name:
                data.current = None
            self._write(data)
        return True

    def _write(self, data: ContextStoreData) -> None:
        payload = json.dumps(data.model_dump(mode="json"), indent=2, sort_keys=True)
        atomic_write_text(self.path, payload + "\n", mode=_SECURE_MODE)


def _apply(record: ImsContext, updates: dict[str, Any]) -> ImsContext:
    """Return a validated copy of ``record`` with ``updates`` applied."""
    if "name" in updates and updates["name"] != record.name:
        raise ValueError("Context name cannot be changed")
    merged = record.model_dump()
    merged.update(updates)
    return ImsContext.model_validate(merged)


def validate_context_name(name: str) -> None:
    """Validate a context name is safe for use on the command line and disk."""
    if not name or not name.strip():
        raise ValueError("Context name cannot be empty")
    if "/" in name or "\\" in name or ".." in name:
        raise ValueError("Context name cannot contain path separators or '..'")
    if name.startswith("."):
        raise ValueError("Context name cannot start with '.'")
