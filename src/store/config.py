"""Runtime configuration for StoreFacade."""

import os
from dataclasses import dataclass

from src.exceptions import StoreConfigError

__all__ = ["StoreConfig", "DEFAULT_DB_PATH", "DEFAULT_MEMORY_IDENTIFIER"]

DEFAULT_DB_PATH           = "~/.dualstore/store.db"
DEFAULT_MEMORY_IDENTIFIER = "MemoryStore"

_TRUE  = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class StoreConfig:
    """Which backing store a facade opens."""
    in_memory:         bool = False
    db_path:           str  = DEFAULT_DB_PATH            # used when in_memory is False
    memory_identifier: str  = DEFAULT_MEMORY_IDENTIFIER  # used when in_memory is True

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """
        Build a config from DUALSTORE_IN_MEMORY, DUALSTORE_DB_PATH and
        DUALSTORE_MEMORY_ID; unset variables keep their defaults.

        Raises:
            StoreConfigError: DUALSTORE_IN_MEMORY is not a recognised boolean.
        """
        return cls(
            in_memory=_parse_bool("DUALSTORE_IN_MEMORY", os.getenv("DUALSTORE_IN_MEMORY", "")),
            db_path=os.getenv("DUALSTORE_DB_PATH") or DEFAULT_DB_PATH,
            memory_identifier=os.getenv("DUALSTORE_MEMORY_ID") or DEFAULT_MEMORY_IDENTIFIER,
        )

    def describe(self) -> str:
        return f"memory:{self.memory_identifier}" if self.in_memory else self.db_path


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise StoreConfigError(
        f"Invalid {name} value: expected one of 1/0/true/false/yes/no, got {raw!r}"
    )
