"""Inference backends and backend output parsing."""

from .fake_llm import FakeInferenceBackend
from .ollama_llm import OllamaInferenceBackend
from .response_parser import parse_response

__all__ = ["FakeInferenceBackend", "OllamaInferenceBackend", "parse_response"]
