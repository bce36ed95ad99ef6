"""
store — transactional facade over a persistent or in-memory object store.

Public API
──────────
StoreConfig        — which backing store to open
StoreSelector      — resolves the StorageHandle for a config
StoreFacade        — save / object / objects / update / delete
WriteBatch         — mutations staged inside StoreFacade.update()
Validator          — protocol for the optional write gate
CallableValidator  — adapt a predicate function into a Validator
"""

from src.store.config import StoreConfig
from src.store.facade import StoreFacade, WriteBatch
from src.store.selector import StoreSelector
from src.store.validator import CallableValidator, Validator

__all__ = [
    "StoreConfig",
    "StoreFacade",
    "WriteBatch",
    "StoreSelector",
    "Validator",
    "CallableValidator",
]
