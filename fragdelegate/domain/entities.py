"""
Name: Domain Entities

Responsibilities:
  - Define the data flowing through a delegation run
    (Fragment, ModelProfile, Assignment, FragmentResult, TaskResult)
  - Provide closed tag sets as enums (fragment type, priority, model role)

Collaborators:
  - None (pure domain layer, no external dependencies)

Constraints:
  - Fragments and results are immutable once produced
  - Must remain framework-agnostic

Notes:
  - Fragment.estimated_tokens uses the fixed ceil(len/4) heuristic
  - TaskResult.to_dict() is the JSON contract consumed by callers
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


def estimate_tokens(text: str) -> int:
    """R: Approximate token count: one token per four characters, rounded up."""
    return math.ceil(len(text) / 4)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class FragmentType(str, Enum):
    """R: Semantic tag of a fragment; drives model assignment and merge grouping."""

    CONTEXT = "context"
    STEP = "step"
    DATA = "data"
    TECHNICAL = "technical"
    DESIGN = "design"
    CHUNK = "chunk"
    FINAL = "final"
    GENERAL = "general"


class Priority(str, Enum):
    HIGH = "high"
    NORMAL = "normal"


class ModelRole(str, Enum):
    """R: What a model profile is good at; used by model selection and synthesis."""

    GENERAL_PURPOSE = "general-purpose"
    STRUCTURED = "structured"
    PRECISE = "precise"
    CREATIVE = "creative"


class FragmentStatus(str, Enum):
    """R: States of a fragment execution."""

    PENDING = "pending"
    RUNNING = "running"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ExecutionPath(str, Enum):
    """R: Which path of the fallback chain produced a TaskResult."""

    FRAGMENTED = "fragmented"
    FALLBACK_SINGLE_CALL = "fallback_single_call"
    FALLBACK_EMERGENCY = "fallback_emergency"


@dataclass(frozen=True)
class Fragment:
    """
    R: A typed, ordered chunk of the original text.

    Attributes:
        content: Text payload sent to the backend
        type: Semantic tag (context, step, data, ...)
        priority: Informational priority (high for marker-started sections)
        dependencies: Ids of the fragments this one follows (hint only)
        index: 0-based position in the fragment list
    """

    content: str
    type: FragmentType = FragmentType.GENERAL
    priority: Priority = Priority.NORMAL
    dependencies: Tuple[str, ...] = ()
    index: int = 0

    @property
    def fragment_id(self) -> str:
        return f"fragment-{self.index + 1}"

    @property
    def estimated_tokens(self) -> int:
        return estimate_tokens(self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.fragment_id,
            "type": self.type.value,
            "priority": self.priority.value,
            "dependencies": list(self.dependencies),
            "estimated_tokens": self.estimated_tokens,
            "content": self.content,
        }


@dataclass(frozen=True)
class InvocationParams:
    """R: Execution parameters passed to the backend with each prompt."""

    temperature: float
    max_tokens: int

    def to_dict(self) -> Dict[str, Any]:
        return {"temperature": self.temperature, "max_tokens": self.max_tokens}


@dataclass(frozen=True)
class ModelProfile:
    """
    R: Named backend model configuration.

    Attributes:
        name: Model identifier understood by the backend
        role: Strength category (None for ad-hoc forced models)
        capabilities: Strength tags
        max_tokens: Generation limit
        temperature: Default sampling temperature
    """

    name: str
    role: Optional[ModelRole] = None
    capabilities: FrozenSet[str] = frozenset()
    max_tokens: int = 2048
    temperature: float = 0.6

    def with_temperature(self, temperature: float) -> "ModelProfile":
        return replace(self, temperature=temperature)


@dataclass(frozen=True)
class Assignment:
    """R: One fragment paired with the model profile that will execute it."""

    fragment: Fragment
    model: ModelProfile

    @property
    def params(self) -> InvocationParams:
        return InvocationParams(
            temperature=self.model.temperature, max_tokens=self.model.max_tokens
        )


@dataclass(frozen=True)
class FragmentResult:
    """
    R: Terminal outcome of one fragment execution.

    Exactly one FragmentResult exists per fragment of a run.
    """

    fragment: Fragment
    model: ModelProfile
    success: bool
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    attempts: int = 0
    timestamp: str = field(default_factory=utc_now_iso)

    @property
    def status(self) -> FragmentStatus:
        return FragmentStatus.SUCCEEDED if self.success else FragmentStatus.FAILED


@dataclass
class TaskResult:
    """
    R: Top-level result of execute_fragmented_task.

    Attributes:
        success: True only for the fragmented path
        path: Which path of the fallback chain produced the result
        result: Merged result (fragmented path)
        fragments_count: Number of fragments produced
        models_used: Model names of the successful fragments
        fallback: Fallback payload ({source, model?, result, error?})
        error: Why the fragmented path was abandoned
        error_detail: {error_code, message, error_id} of that error
        metadata: Stage timings and run id
    """

    success: bool
    path: ExecutionPath
    result: Optional[Dict[str, Any]] = None
    fragments_count: Optional[int] = None
    models_used: Optional[List[str]] = None
    fallback: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_detail: Optional[Dict[str, str]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "path": self.path.value}
        if self.result is not None:
            payload["result"] = self.result
        if self.fragments_count is not None:
            payload["fragments_count"] = self.fragments_count
        if self.models_used is not None:
            payload["models_used"] = self.models_used
        if self.fallback is not None:
            payload["fallback"] = self.fallback
        if self.error is not None:
            payload["error"] = self.error
        if self.error_detail is not None:
            payload["error_detail"] = self.error_detail
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload
