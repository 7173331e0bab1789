"""Concurrent writers from separate processes never corrupt the store."""

from __future__ import annotations

import multiprocessing
from pathlib import Path

from imscli.core.context.store import ContextStore
from tests.helpers import persist_worker, seed_context

ROUNDS = 20


def test_concurrent_persist_keeps_document_intact(tmp_path: Path) -> None:
    store = ContextStore(tmp_path / "contexts.json", lock_timeout=30.0)
    seed_context(store, "shared")

    mp = multiprocessing.get_context("spawn")
    workers = [
        mp.Process(target=persist_worker, args=(str(store.path), name, ROUNDS))
        for name in ("alpha", "bravo")
    ]
    for worker in workers:
        worker.start()

    # Readers never take the lock and must always see a complete document.
    while any(worker.is_alive() for worker in workers):
        context = store.resolve("shared")
        assert context.client_id == "client-123"

    for worker in workers:
        worker.join(timeout=60)
        assert worker.exitcode == 0

    final = store.resolve("shared")
    writer = final.extra["writer"]
    assert writer in {"alpha", "bravo"}
    assert final.extra["round"] == str(ROUNDS - 1)
    assert final.access_token is not None
    assert final.access_token.value.startswith(f"{writer}-{ROUNDS - 1}-")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["contexts.json"]
