"""Shared test fixtures for the ims-cli test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from imscli.core.context.store import ContextStore


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """State root used by CLI tests."""
    return tmp_path / ".ims-cli"


@pytest.fixture
def store(root: Path) -> ContextStore:
    return ContextStore(root / "contexts.json", lock_timeout=1.0)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("IMS_CLI_TOKEN_MARGIN", "IMS_CONTEXT", "IMS_CLI_ROOT"):
        monkeypatch.delenv(name, raising=False)
