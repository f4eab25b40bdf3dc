"""Worker package — the orchestrator behind the studio's async boundary.

HOW: protocol.py defines the caller-facing surface, impl.py implements
it over a ProjectStore, catalog.py holds the catalog freshness policy.
"""

from predictive_text_studio.worker.catalog import CatalogFreshnessManager
from predictive_text_studio.worker.impl import (
    CompileError,
    CompileState,
    MissingBCP47TagError,
    NoDictionarySourcesError,
    PredictiveTextStudioWorkerImpl,
)
from predictive_text_studio.worker.protocol import PredictiveTextStudioWorker

__all__ = [
    "CatalogFreshnessManager",
    "CompileError",
    "CompileState",
    "MissingBCP47TagError",
    "NoDictionarySourcesError",
    "PredictiveTextStudioWorker",
    "PredictiveTextStudioWorkerImpl",
]
