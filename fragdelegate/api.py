"""
Name: Public Entry Points

Responsibilities:
  - fragment_text: fragmentation without any backend
  - execute_fragmented_task: full delegation run that never raises
  - check_backend_connectivity: probe the configured backend

Collaborators:
  - container.py: backend resolution when none is given
  - application.usecases.ExecuteFragmentedTaskUseCase

Constraints:
  - execute_fragmented_task is the outermost error boundary: invalid
    options or an unbuildable backend still yield an emergency TaskResult
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .application.connectivity import check_connectivity
from .application.fallback import emergency_task_result
from .application.usecases import ExecuteFragmentedTaskUseCase, TaskOptions
from .container import get_inference_backend
from .crosscutting.config import get_settings
from .crosscutting.logger import logger
from .domain.entities import TaskResult
from .domain.services import InferenceBackend
from .infrastructure.text.fragmenter import fragment_text

__all__ = ["check_backend_connectivity", "execute_fragmented_task", "fragment_text"]


async def execute_fragmented_task(
    text: str,
    options: Union[TaskOptions, Mapping[str, Any], None] = None,
    backend: Optional[InferenceBackend] = None,
) -> TaskResult:
    """
    R: Fragment text, run the fragments across models and merge the answers.

    Args:
        text: The large prompt
        options: TaskOptions or a mapping of option names (layered over
            settings)
        backend: Inference backend (default: resolved from settings)

    Returns:
        TaskResult tagged with the execution path; never raises
    """
    try:
        task_options = (
            options
            if isinstance(options, TaskOptions)
            else TaskOptions.from_mapping(options)
        )
        use_case = ExecuteFragmentedTaskUseCase(
            backend=backend if backend is not None else get_inference_backend(),
            options=task_options,
        )
    except Exception as e:
        logger.exception(
            "Could not prepare delegation run", extra={"error_type": type(e).__name__}
        )
        return emergency_task_result(text, e)

    return await use_case.execute(text)


async def check_backend_connectivity(
    models: Optional[Iterable[str]] = None,
    backend: Optional[InferenceBackend] = None,
) -> Dict[str, Dict[str, Any]]:
    return await check_connectivity(
        backend if backend is not None else get_inference_backend(),
        models=models,
        timeout_ms=get_settings().connectivity_timeout_ms,
    )
