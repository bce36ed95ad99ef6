"""
Unit tests for src/gui/worker.py — requires PyQt6.

Run with: QT_QPA_PLATFORM=offscreen pytest tests/unit/test_gui_worker.py

Coverage plan
─────────────
StoreWorker → 4 tests (finished on success, failed on job error,
                       failed on unavailable store, handle closed after run)
"""

import os
import uuid
from dataclasses import dataclass

import pytest

# Ensure offscreen rendering when no display is available
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

PyQt6 = pytest.importorskip("PyQt6", reason="PyQt6 not installed")

from src.engine.models import PersistableModel  # noqa: E402


@dataclass
class Bookmark(PersistableModel):
    __primary_key__ = "url"
    url: str
    title: str


def _memory_config():
    from src.store.config import StoreConfig
    return StoreConfig(in_memory=True, memory_identifier=f"gui-{uuid.uuid4().hex}")


class TestStoreWorker:
    """StoreWorker — runs a store job in a QThread, emits signals."""

    def test_worker_emits_finished_with_job_result(self):
        from src.gui.worker import StoreWorker

        def job(store):
            store.save(Bookmark(url="https://a", title="A"))
            return store.objects(Bookmark)

        worker = StoreWorker(_memory_config(), job=job)
        results = []
        worker.finished.connect(lambda r: results.append(r))
        worker.run()

        assert results == [[Bookmark(url="https://a", title="A")]]

    def test_worker_emits_failed_when_job_raises(self):
        from src.gui.worker import StoreWorker

        def job(store):
            raise RuntimeError("boom")

        worker = StoreWorker(_memory_config(), job=job)
        errors, results = [], []
        worker.failed.connect(lambda e: errors.append(e))
        worker.finished.connect(lambda r: results.append(r))
        worker.run()

        assert errors == ["boom"]
        assert results == []

    def test_worker_emits_failed_for_unavailable_store(self, tmp_path):
        from src.gui.worker import StoreWorker
        from src.store.config import StoreConfig
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")

        worker = StoreWorker(
            StoreConfig(db_path=str(blocker / "s.db")),
            job=lambda store: store.objects(Bookmark),
        )
        errors = []
        worker.failed.connect(lambda e: errors.append(e))
        worker.run()

        assert len(errors) == 1
        assert "unavailable" in errors[0]

    def test_facade_is_closed_after_run(self):
        from src.gui.worker import StoreWorker
        seen = []

        worker = StoreWorker(_memory_config(), job=lambda store: seen.append(store))
        worker.run()

        assert len(seen) == 1
        assert seen[0].is_available is False
