"""
StoreWorker — runs a job against a StoreFacade on a background QThread.

The facade (and therefore its storage handle) is created inside run(), so
the handle lives on the worker's thread for its whole life and is closed
before the result is reported.

Usage (any QWidget)::

    self._thread = QThread()
    self._worker = StoreWorker(config, job=lambda store: store.objects(Connection))
    self._worker.moveToThread(self._thread)
    self._thread.started.connect(self._worker.run)
    self._worker.finished.connect(self._thread.quit)
    self._worker.failed.connect(self._thread.quit)
    self._worker.finished.connect(self._on_connections_loaded)
    self._thread.start()

Signals
───────
finished(object) — whatever the job returned
failed(str)      — human-readable error message
"""

import logging
from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from src.engine.base import AbstractEngine
from src.store.config import StoreConfig
from src.store.facade import StoreFacade
from src.store.validator import Validator

__all__ = ["StoreWorker"]

logger = logging.getLogger(__name__)


class StoreWorker(QObject):
    """
    Wraps one store job for execution in a QThread.

    All interaction with the GUI must go through signals — never touch
    Qt widgets from inside the job.
    """

    finished = pyqtSignal(object)  # job result
    failed   = pyqtSignal(str)     # error message

    def __init__(
        self,
        config: StoreConfig,
        job: Callable[[StoreFacade], Any],
        validator: Optional[Validator] = None,
        engine: Optional[AbstractEngine] = None,
    ) -> None:
        super().__init__()
        self._config    = config
        self._job       = job
        self._validator = validator
        self._engine    = engine

    def run(self) -> None:
        """Entry point — connect QThread.started to this slot."""
        try:
            with StoreFacade(self._config, validator=self._validator, engine=self._engine) as store:
                result = self._job(store)
        except Exception as exc:  # noqa: BLE001
            logger.exception("StoreWorker.run() failed")
            self.failed.emit(str(exc))
            return
        self.finished.emit(result)
