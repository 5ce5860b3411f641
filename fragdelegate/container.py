"""
Name: Dependency Injection Container

Responsibilities:
  - Select the inference backend from settings

Collaborators:
  - crosscutting.config: get_settings
  - infrastructure.services: FakeInferenceBackend, OllamaInferenceBackend

Constraints:
  - Manual DI (no library like dependency-injector)
  - Singletons via functools.lru_cache

Notes:
  - This is the composition root; the application layer only sees the
    InferenceBackend protocol
  - Tests bypass the container by passing a backend explicitly
"""

from functools import lru_cache

from .crosscutting.config import get_settings
from .domain.services import InferenceBackend
from .infrastructure.services import FakeInferenceBackend, OllamaInferenceBackend


@lru_cache
def get_inference_backend() -> InferenceBackend:
    """
    R: Get singleton instance of the inference backend.

    Returns:
        Ollama or Fake implementation of InferenceBackend
    """
    settings = get_settings()
    if settings.fake_llm:
        return FakeInferenceBackend()
    return OllamaInferenceBackend(
        endpoint=settings.ollama_endpoint,
        timeout_s=settings.timeout_ms / 1000,
    )
