"""
gui — PyQt6 integration for dualstore.

Public API
──────────
StoreWorker  — runs a store job on a background QThread, reports via signals
"""

from src.gui.worker import StoreWorker

__all__ = ["StoreWorker"]
