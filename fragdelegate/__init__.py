"""
fragdelegate: split large prompts into typed fragments, run them across
several local LLMs and merge the answers.
"""

from .api import check_backend_connectivity, execute_fragmented_task, fragment_text
from .application.usecases import TaskOptions
from .domain.entities import ExecutionPath, Fragment, FragmentType, TaskResult
from .infrastructure.text.fragmenter import FragmenterConfig

__version__ = "0.1.0"

__all__ = [
    "ExecutionPath",
    "Fragment",
    "FragmentType",
    "FragmenterConfig",
    "TaskOptions",
    "TaskResult",
    "check_backend_connectivity",
    "execute_fragmented_task",
    "fragment_text",
]
