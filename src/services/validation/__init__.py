"""
Validation service package for Kontent.ai content.

- validation_orchestrator.py: start/poll/fetch/reconcile lifecycle of a run
- warning_heuristics.py: content-quality warning rules
- progress.py: simulated progress and display helpers
- result_store.py: immutable run state, results and filters
- run_controller.py: start/stop/clear of background runs
"""
from .validation_orchestrator import CancellationToken, ValidationOrchestrator
from .warning_heuristics import compute_warnings
from .result_store import PaginatedResults, ResultStore, ResultSummary, ValidationState
from .run_controller import ValidationRunController

__all__ = [
    'CancellationToken',
    'ValidationOrchestrator',
    'compute_warnings',
    'PaginatedResults',
    'ResultStore',
    'ResultSummary',
    'ValidationState',
    'ValidationRunController',
]
