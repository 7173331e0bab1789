"""Tests for the persisted context store."""

from __future__ import annotations

import json
import os
import platform
from datetime import timedelta
from pathlib import Path

import pytest

from imscli.core.context.store import ContextStore, ContextStoreError, validate_context_name
from imscli.core.errors import ContextNotConfigured
from imscli.models.context import ImsEnvironment
from tests.helpers import make_token, seed_context

# --- Resolution ---

def test_resolve_named_context(store: ContextStore) -> None:
    seed_context(store, "dev", env="stage")
    context = store.resolve("dev")
    assert context.name == "dev"
    assert context.env is ImsEnvironment.STAGE
    assert context.client_id == "client-123"


def test_resolve_without_name_uses_current(store: ContextStore) -> None:
    seed_context(store, "dev")
    assert store.resolve().name == "dev"


def test_resolve_without_current_fails(store: ContextStore) -> None:
    with pytest.raises(ContextNotConfigured, match="No current IMS context"):
        store.resolve()


def test_resolve_unknown_name_fails(store: ContextStore) -> None:
    seed_context(store, "dev")
    with pytest.raises(ContextNotConfigured, match="'prod' is not configured"):
        store.resolve("prod")


def test_resolve_returns_copy(store: ContextStore) -> None:
    seed_context(store, "dev", access=make_token("a", timedelta(hours=1)))
    context = store.resolve("dev")
    context.extra["mutated"] = "yes"
    assert "mutated" not in store.resolve("dev").extra


def test_missing_file_is_empty_store(tmp_path: Path) -> None:
    store = ContextStore(tmp_path / "nowhere" / "contexts.json")
    assert store.list_contexts() == []
    assert store.current_name() is None


def test_corrupt_file_raises_store_error(store: ContextStore) -> None:
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ContextStoreError, match="Invalid context store"):
        store.load()


# --- Upsert / select / remove ---

def test_first_context_becomes_current(store: ContextStore) -> None:
    seed_context(store, "first")
    seed_context(store, "second")
    assert store.current_name() == "first"


def test_upsert_updates_existing_fields(store: ContextStore) -> None:
    seed_context(store, "dev")
    store.upsert("dev", scope="openid,AdobeID")
    context = store.resolve("dev")
    assert context.scope == "openid,AdobeID"
    assert context.client_id == "client-123"


def test_upsert_rejects_unknown_environment(store: ContextStore) -> None:
    with pytest.raises(ValueError):
        store.upsert("dev", env="qa")


def test_select_switches_current(store: ContextStore) -> None:
    seed_context(store, "first")
    seed_context(store, "second")
    store.select("second")
    assert store.current_name() == "second"


def test_select_unknown_fails(store: ContextStore) -> None:
    with pytest.raises(ContextNotConfigured):
        store.select("ghost")


def test_remove_clears_current(store: ContextStore) -> None:
    seed_context(store, "dev")
    assert store.remove("dev") is True
    assert store.current_name() is None
    assert not store.exists("dev")


def test_remove_nonexistent(store: ContextStore) -> None:
    assert store.remove("ghost") is False


def test_list_contexts_sorted(store: ContextStore) -> None:
    seed_context(store, "zeta")
    seed_context(store, "alpha")
    assert [c.name for c in store.list_contexts()] == ["alpha", "zeta"]


# --- Persist ---

def test_persist_round_trip(store: ContextStore) -> None:
    seed_context(store, "dev")
    token = make_token("access-xyz", timedelta(hours=2))
    written = store.persist("dev", access_token=token, extra={"org": "acme"})

    reread = ContextStore(store.path).resolve("dev")
    assert reread == written
    assert reread.access_token == token
    assert reread.extra == {"org": "acme"}


def test_persist_unknown_context_fails(store: ContextStore) -> None:
    with pytest.raises(ContextNotConfigured):
        store.persist("ghost", scope="x")


def test_persist_cannot_rename(store: ContextStore) -> None:
    seed_context(store, "dev")
    with pytest.raises(ValueError, match="cannot be changed"):
        store.persist("dev", name="other")


def test_persist_leaves_no_temp_or_lock_files(store: ContextStore) -> None:
    seed_context(store, "dev")
    store.persist("dev", scope="openid")
    leftovers = sorted(p.name for p in store.path.parent.iterdir())
    assert leftovers == ["contexts.json"]


def test_document_is_plain_json(store: ContextStore) -> None:
    seed_context(store, "dev", access=make_token("a", timedelta(hours=1)))
    payload = json.loads(store.path.read_text(encoding="utf-8"))
    assert payload["current"] == "dev"
    assert payload["version"] == 1
    assert payload["contexts"]["dev"]["access_token"]["value"] == "a"


@pytest.mark.skipif(platform.system() == "Windows", reason="POSIX permissions")
def test_document_permissions_are_private(store: ContextStore) -> None:
    seed_context(store, "dev")
    mode = oct(os.stat(store.path).st_mode)[-3:]
    assert mode == "600"


# --- Name validation ---

def test_validate_name_rejects_empty() -> None:
    with pytest.raises(ValueError, match="empty"):
        validate_context_name("")


def test_validate_name_rejects_path_separators() -> None:
    with pytest.raises(ValueError, match="path separators"):
        validate_context_name("../evil")


def test_validate_name_rejects_dotfile() -> None:
    with pytest.raises(ValueError, match="start with"):
        validate_context_name(".hidden")


def test_validate_name_accepts_normal() -> None:
    validate_context_name("my-ctx_2")
