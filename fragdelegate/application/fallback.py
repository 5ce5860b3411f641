"""
Name: Fallback Chain

Responsibilities:
  - Retry a whole task as one unfragmented call with the default model
  - Build the static emergency answer when no backend call works
  - Guess the task domain from a keyword table

Collaborators:
  - application/dispatcher.py: Dispatcher.call_backend (timeout + parsing)
  - domain.model_catalog.get_profile: default model profile
  - domain.entities: ExecutionPath, TaskResult
  - crosscutting.exceptions: DelegateError (error_detail payload)

Constraints:
  - The single-call fallback makes exactly one attempt (no retry)
  - The emergency answer is pure: no IO, never raises
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..crosscutting.exceptions import DelegateError
from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_task_path
from ..domain.entities import ExecutionPath, TaskResult
from ..domain.model_catalog import get_profile
from .dispatcher import Dispatcher

GENERAL_DOMAIN = "general"

# R: Checked in order; the first domain with a matching keyword wins
DOMAIN_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "historical": ("histoire", "historical", "chronologie", "événement"),
        "scientific": ("science", "recherche", "découverte", "expérience"),
        "business": ("entreprise", "business", "projet", "milestone"),
        "personal": ("personnel", "cv", "carrière", "formation"),
        "project": ("projet", "sprint", "agile", "développement"),
    }
)

BASIC_RECOMMENDATIONS: Tuple[str, ...] = (
    "Use vis-timeline as the primary library",
    "Implement a responsive design",
    "Add basic interactions",
    "Optimize for performance",
)


def detect_domain(text: str) -> str:
    """R: First domain whose keywords occur in text (case-insensitive)."""
    lowered = text.lower()
    for domain, keywords in DOMAIN_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return domain
    return GENERAL_DOMAIN


def emergency_fallback(text: str) -> Dict[str, Any]:
    return {
        "analysis": "Local emergency analysis",
        "detected_domain": detect_domain(text),
        "basic_recommendations": list(BASIC_RECOMMENDATIONS),
        "warning": "Result generated locally without an LLM",
    }


async def single_call_fallback(
    dispatcher: Dispatcher, text: str, model_name: str
) -> Dict[str, Any]:
    """
    R: Send the whole text to one model in a single call.

    Raises:
        Exception: Whatever the backend call raised (the caller escalates
            to the emergency answer)
    """
    model = get_profile(model_name)
    result = await dispatcher.call_backend(text, model)
    return {
        "source": ExecutionPath.FALLBACK_SINGLE_CALL.value,
        "model": model.name,
        "result": result,
    }


def emergency_task_result(
    text: str,
    error: BaseException,
    *,
    fallback_error: Optional[BaseException] = None,
    fragments_count: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> TaskResult:
    """R: TaskResult for the last link of the chain."""
    path = ExecutionPath.FALLBACK_EMERGENCY
    cause = fallback_error or error
    fallback = {
        "source": path.value,
        "error": str(cause) or type(cause).__name__,
        "result": emergency_fallback(text if isinstance(text, str) else str(text)),
    }

    detail = DelegateError.wrap(error).to_response()

    record_task_path(path.value)
    logger.warning(
        "Returning emergency answer",
        extra={
            "path": path.value,
            "domain": fallback["result"]["detected_domain"],
            "error_id": detail.error_id,
        },
    )
    return TaskResult(
        success=False,
        path=path,
        fragments_count=fragments_count,
        fallback=fallback,
        error=str(error) or type(error).__name__,
        error_detail=detail.to_dict(),
        metadata=metadata or {},
    )
