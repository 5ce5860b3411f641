"""Application layer: dispatch, merge, fallback chain and use cases."""

from .connectivity import check_connectivity
from .dispatcher import DispatchOptions, Dispatcher, assign_models, select_model
from .fallback import detect_domain, emergency_fallback
from .merge import MergeStrategy, merge_results
from .usecases import ExecuteFragmentedTaskUseCase, TaskOptions

__all__ = [
    "DispatchOptions",
    "Dispatcher",
    "ExecuteFragmentedTaskUseCase",
    "MergeStrategy",
    "TaskOptions",
    "assign_models",
    "check_connectivity",
    "detect_domain",
    "emergency_fallback",
    "merge_results",
    "select_model",
]
