"""StoreSelector — resolves the one StorageHandle a facade will own."""

import logging
from typing import Optional

from src.engine.base import AbstractEngine, StorageHandle, get_engine
from src.exceptions import EngineError, StoreUnavailableError
from .config import StoreConfig

__all__ = ["StoreSelector"]

logger = logging.getLogger(__name__)


class StoreSelector:
    """
    Pick the persistent or the in-memory store from a StoreConfig.

    Each call to resolve() opens a fresh handle; the caller owns it.
    """

    def __init__(self, config: StoreConfig, engine: Optional[AbstractEngine] = None) -> None:
        self._config = config
        self._engine = engine or get_engine()

    def resolve(self) -> StorageHandle:
        """
        Raises:
            StoreUnavailableError: the engine could not open the selected store.
        """
        cfg = self._config
        try:
            if cfg.in_memory:
                handle = self._engine.open_in_memory(cfg.memory_identifier)
            else:
                handle = self._engine.open_persistent(cfg.db_path)
        except EngineError as exc:
            raise StoreUnavailableError(
                f"Store {cfg.describe()} is unavailable: {exc}"
            ) from exc
        logger.debug("Resolved store %s → %r", cfg.describe(), handle)
        return handle
