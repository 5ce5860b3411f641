"""Domain layer: entities, model catalog and service contracts."""

from .entities import (
    Assignment,
    ExecutionPath,
    Fragment,
    FragmentResult,
    FragmentStatus,
    FragmentType,
    InvocationParams,
    ModelProfile,
    ModelRole,
    Priority,
    TaskResult,
    estimate_tokens,
)
from .services import InferenceBackend

__all__ = [
    "Assignment",
    "ExecutionPath",
    "Fragment",
    "FragmentResult",
    "FragmentStatus",
    "FragmentType",
    "InferenceBackend",
    "InvocationParams",
    "ModelProfile",
    "ModelRole",
    "Priority",
    "TaskResult",
    "estimate_tokens",
]
