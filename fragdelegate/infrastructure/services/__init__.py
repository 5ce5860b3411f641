"""Infrastructure services"""

from .llm import FakeInferenceBackend, OllamaInferenceBackend, parse_response
from .retry import create_async_retrying

__all__ = [
    "FakeInferenceBackend",
    "OllamaInferenceBackend",
    "create_async_retrying",
    "parse_response",
]
