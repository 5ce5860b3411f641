"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure the test environment (no .env file, set before any
    fragdelegate import so import-time logger setup ignores it too)
  - Provide a scripted InferenceBackend that records its calls
  - Provide sample prompts and fast task options (no real delays)

Collaborators:
  - pytest / pytest-asyncio
  - fragdelegate.domain: entities and the InferenceBackend contract

Notes:
  - Fixtures are auto-discovered by pytest
  - ScriptedBackend answers are functions of (prompt, model_name, params)
"""

import os
from typing import Any, Callable, List, Optional, Tuple

import pytest

os.environ["FRAGDELEGATE_ENV_FILE"] = ""

from fragdelegate.application.usecases import TaskOptions  # noqa: E402
from fragdelegate.crosscutting import config as app_config  # noqa: E402
from fragdelegate.domain.entities import InvocationParams  # noqa: E402


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


Responder = Callable[[str, str, InvocationParams], Any]


class ScriptedBackend:
    """
    R: InferenceBackend double.

    responder returns the payload, or raises to simulate a failure.
    Every call is recorded as (prompt, model_name, params).
    """

    def __init__(self, responder: Optional[Responder] = None):
        self._responder = responder or (lambda prompt, model, params: {"ok": True})
        self.calls: List[Tuple[str, str, InvocationParams]] = []

    async def invoke(self, prompt: str, model_name: str, params: InvocationParams) -> Any:
        self.calls.append((prompt, model_name, params))
        return self._responder(prompt, model_name, params)

    @property
    def models_called(self) -> List[str]:
        return [model for _, model, _ in self.calls]


class FailingBackend(ScriptedBackend):
    """R: Backend whose every call raises."""

    def __init__(self, error: Exception | None = None):
        def fail(prompt, model, params):
            raise error or ConnectionError("backend unreachable")

        super().__init__(fail)


class RecordingSleep:
    """R: Awaitable sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    app_config.get_settings.cache_clear()
    yield
    app_config.get_settings.cache_clear()


@pytest.fixture
def scripted_backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def backend_factory() -> Callable[[Optional[Responder]], ScriptedBackend]:
    """R: Build a ScriptedBackend from a responder function."""
    return ScriptedBackend


@pytest.fixture
def failing_backend() -> FailingBackend:
    return FailingBackend()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_options() -> TaskOptions:
    """R: Default options with backoff and batch pauses disabled."""
    return TaskOptions(retry_backoff_ms=0, inter_batch_pause_ms=0, timeout_ms=1000)


@pytest.fixture
def sectioned_prompt() -> str:
    return "CONTEXT: building a timeline\nSTEP: pick a library"


@pytest.fixture
def french_prompt() -> str:
    return (
        "Intro générale du projet\n"
        "CONTEXTE: une chronologie historique\n"
        "ÉTAPE: choisir une bibliothèque\n"
        "DONNÉES: 120 événements datés"
    )
