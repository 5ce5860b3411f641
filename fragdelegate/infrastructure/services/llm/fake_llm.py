"""
Name: Fake Inference Backend (Deterministic)

Responsibilities:
  - Provide deterministic model answers for testing/CI and offline demos
  - Simulate per-model latency when asked to
  - Simulate unavailable models

Collaborators:
  - domain.services.InferenceBackend: contract implemented
  - domain.entities.InvocationParams

Constraints:
  - No IO, no network
  - Same (prompt, model, params) always gives the same answer
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, Mapping, Optional

from ....crosscutting.exceptions import BackendError
from ....crosscutting.logger import logger
from ....domain.entities import InvocationParams


def build_answer(prompt: str, model_name: str, params: InvocationParams) -> Dict[str, Any]:
    """R: Canned, model-flavoured answer keyed on prompt keywords."""
    prompt_lower = prompt.lower()

    if model_name == "codellama" and "technical" in prompt_lower:
        return {
            "analysis": "In-depth technical analysis",
            "architecture": "Modular architecture recommended",
            "implementation": "Incremental implementation backed by tests",
            "performance": "Critical optimizations identified",
        }

    if model_name == "mistral" and "structured" in prompt_lower:
        return {
            "structure": "Optimal hierarchical structure",
            "organization": "Cohesive modules",
            "dependencies": "Minimal, explicit dependencies",
            "maintainability": "High maintainability",
        }

    if model_name == "gemma" and "design" in prompt_lower:
        return {
            "visual_approach": "Modern visual approach",
            "user_experience": "Intuitive, accessible UX",
            "aesthetics": "Elegant, functional design",
            "interactions": "Smooth, natural interactions",
        }

    return {
        "analysis": f"Analysis performed by {model_name}",
        "recommendations": "Recommendations adapted to the context",
        "next_steps": "Next steps identified",
        "confidence": "high" if params.temperature < 0.5 else "medium",
    }


class FakeInferenceBackend:
    """R: Deterministic InferenceBackend for tests/CI."""

    def __init__(
        self,
        latencies: Optional[Mapping[str, float]] = None,
        unavailable_models: Iterable[str] = (),
    ) -> None:
        self._latencies = dict(latencies or {})
        self._unavailable = frozenset(unavailable_models)
        logger.info(
            "FakeInferenceBackend initialized",
            extra={"unavailable_models": sorted(self._unavailable)},
        )

    async def invoke(
        self, prompt: str, model_name: str, params: InvocationParams
    ) -> Dict[str, Any]:
        delay = self._latencies.get(model_name, 0.0)
        if delay:
            await asyncio.sleep(delay)
        if model_name in self._unavailable:
            raise BackendError(f"Model {model_name} is unavailable")
        return build_answer(prompt, model_name, params)
