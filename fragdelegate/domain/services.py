"""
Name: Domain Service Interfaces

Responsibilities:
  - Define the contract of the inference backend
  - Enable dependency inversion (dispatch logic doesn't depend on any provider)

Collaborators:
  - Implementations in infrastructure.services.llm

Constraints:
  - Pure interfaces (Protocol), no implementation
  - Provider-agnostic (local Ollama, a fake, or anything else)

Notes:
  - Using typing.Protocol for structural subtyping
  - Tests pass plain objects with an async invoke() method
"""

from typing import Any, Protocol

from .entities import InvocationParams


class InferenceBackend(Protocol):
    """
    R: Interface for executing one prompt against one named model.

    Implementations may return a dict (already structured) or text
    (parsed by the dispatcher). Failures are reported by raising
    BackendError or BackendTimeoutError.
    """

    async def invoke(
        self, prompt: str, model_name: str, params: InvocationParams
    ) -> Any:
        """
        R: Run a prompt.

        Args:
            prompt: Fragment content (or the whole text for the fallback call)
            model_name: Model identifier understood by the backend
            params: Sampling temperature and generation limit

        Returns:
            Output payload (dict or str)
        """
        ...
