from .base import AbstractEngine, StorageHandle, Transaction, get_engine
from .models import Persistable, PersistableModel, SortSpec, TypeDescriptor, describe
from .sqlite_engine import SQLiteEngine, SQLiteHandle, SQLiteTransaction

__all__ = [
    "AbstractEngine",
    "StorageHandle",
    "Transaction",
    "get_engine",
    "Persistable",
    "PersistableModel",
    "SortSpec",
    "TypeDescriptor",
    "describe",
    "SQLiteEngine",
    "SQLiteHandle",
    "SQLiteTransaction",
]
