"""
Name: Fragment Dispatcher Unit Tests

Responsibilities:
  - Test per-fragment retry, timeout and failure wrapping
  - Test batched execution (concurrency bound, pauses, ordering)
  - Verify metrics and run context side effects

Collaborators:
  - fragdelegate.application.dispatcher: Module under test
  - tests/conftest.py: ScriptedBackend, RecordingSleep

Constraints:
  - No real backoff or batch pauses (RecordingSleep)
"""

import asyncio

import pytest

from fragdelegate.application.dispatcher import (
    DispatchOptions,
    Dispatcher,
    assign_models,
    chunked,
)
from fragdelegate.context import fragment_id_var, model_var
from fragdelegate.crosscutting.exceptions import BackendError
from fragdelegate.crosscutting.metrics import get_registry
from fragdelegate.domain.entities import (
    Assignment,
    Fragment,
    FragmentStatus,
    FragmentType,
    ModelProfile,
)


def _assignment(content: str = "prompt", model: str = "llama3.2", index: int = 0) -> Assignment:
    return Assignment(
        fragment=Fragment(content=content, type=FragmentType.GENERAL, index=index),
        model=ModelProfile(name=model, temperature=0.6),
    )


def _options(**overrides) -> DispatchOptions:
    values = dict(retry_backoff_ms=0, inter_batch_pause_ms=0, timeout_ms=1000)
    values.update(overrides)
    return DispatchOptions(**values)


class FlakyResponder:
    """R: Fails a fixed number of times, then answers."""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    def __call__(self, prompt, model, params):
        self.calls += 1
        if self.calls <= self.failures:
            raise BackendError(f"transient failure {self.calls}")
        return {"answer": prompt}


class SlowBackend:
    """R: Sleeps for a per-prompt delay, tracking peak concurrency."""

    def __init__(self, delays=None, default_delay: float = 0.01):
        self.delays = delays or {}
        self.default_delay = default_delay
        self.active = 0
        self.peak = 0

    async def invoke(self, prompt, model_name, params):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delays.get(prompt, self.default_delay))
        finally:
            self.active -= 1
        return {"prompt": prompt}


@pytest.mark.unit
class TestDispatchOptions:
    """Test suite for option validation."""

    @pytest.mark.parametrize(
        "field", ["concurrency_limit", "max_retries", "timeout_ms"]
    )
    def test_positive_fields(self, field):
        """R: Limits must be > 0."""
        with pytest.raises(ValueError):
            DispatchOptions(**{field: 0})

    def test_negative_pause_rejected(self):
        with pytest.raises(ValueError):
            DispatchOptions(inter_batch_pause_ms=-1)

    def test_chunked(self):
        """R: Consecutive slices of at most size items."""
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
        assert chunked([], 3) == []


@pytest.mark.unit
class TestExecuteFragment:
    """Test suite for single fragment execution."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self, backend_factory, recording_sleep):
        """R: A working backend succeeds in one attempt without sleeping."""
        backend = backend_factory(lambda prompt, model, params: {"model": model})
        dispatcher = Dispatcher(backend, _options(), sleep=recording_sleep)

        result = await dispatcher.execute_fragment(_assignment())

        assert result.success is True
        assert result.status is FragmentStatus.SUCCEEDED
        assert result.result == {"model": "llama3.2"}
        assert result.attempts == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_params_sent_to_backend(self, scripted_backend):
        """R: The backend receives the profile temperature and token limit."""
        dispatcher = Dispatcher(scripted_backend, _options())
        assignment = assign_models([Fragment(content="DATA: x", type=FragmentType.DATA)])[0]

        await dispatcher.execute_fragment(assignment)

        prompt, model, params = scripted_backend.calls[0]
        assert (prompt, model) == ("DATA: x", "codellama")
        assert params.temperature == 0.3
        assert params.max_tokens == 4096

    @pytest.mark.asyncio
    async def test_retries_with_linear_backoff(self, backend_factory, recording_sleep):
        """R: Transient failures are retried, waiting attempt * backoff."""
        responder = FlakyResponder(failures=2)
        dispatcher = Dispatcher(
            backend_factory(responder),
            _options(max_retries=3, retry_backoff_ms=1000),
            sleep=recording_sleep,
        )

        result = await dispatcher.execute_fragment(_assignment("hello"))

        assert result.success is True
        assert result.result == {"answer": "hello"}
        assert result.attempts == 3
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_wrap_failure(self, failing_backend, recording_sleep):
        """R: After max_retries calls the fragment fails without raising."""
        dispatcher = Dispatcher(
            failing_backend, _options(max_retries=3), sleep=recording_sleep
        )

        result = await dispatcher.execute_fragment(_assignment())

        assert result.success is False
        assert result.status is FragmentStatus.FAILED
        assert result.error == "backend unreachable"
        assert result.attempts == 3
        assert len(failing_backend.calls) == 3
        assert result.result is None

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        """R: A call exceeding timeout_ms fails with a timeout message."""
        dispatcher = Dispatcher(
            SlowBackend(default_delay=1.0), _options(timeout_ms=10, max_retries=1)
        )

        result = await dispatcher.execute_fragment(_assignment())

        assert result.success is False
        assert result.error == "Timeout after 10ms"
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_text_payload_is_parsed(self, backend_factory):
        """R: JSON embedded in model prose becomes the result dict."""
        backend = backend_factory(
            lambda prompt, model, params: 'Sure! {"library": "vis-timeline"} Done.'
        )
        dispatcher = Dispatcher(backend, _options())

        result = await dispatcher.execute_fragment(_assignment())

        assert result.result == {"library": "vis-timeline"}

    @pytest.mark.asyncio
    async def test_context_vars_reset(self, scripted_backend):
        """R: Fragment context does not leak past execution."""
        dispatcher = Dispatcher(scripted_backend, _options())

        await dispatcher.execute_fragment(_assignment())

        assert fragment_id_var.get() == ""
        assert model_var.get() == ""

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, failing_backend):
        """R: Attempts and terminal outcomes are counted per model."""
        registry = get_registry()
        model = "metrics-test-model"
        dispatcher = Dispatcher(failing_backend, _options(max_retries=2))

        await dispatcher.execute_fragment(_assignment(model=model))

        assert registry.get_sample_value(
            "fragdelegate_fragment_attempts_total", {"model": model}
        ) == 2.0
        assert registry.get_sample_value(
            "fragdelegate_fragments_total", {"model": model, "status": "failed"}
        ) == 1.0
        assert registry.get_sample_value(
            "fragdelegate_backend_latency_seconds_count", {"model": model}
        ) is None

    @pytest.mark.asyncio
    async def test_latency_observed_for_completed_calls(self, backend_factory):
        registry = get_registry()
        model = "latency-test-model"
        dispatcher = Dispatcher(backend_factory(lambda p, m, params: {"ok": True}), _options())

        await dispatcher.execute_fragment(_assignment(model=model))

        assert registry.get_sample_value(
            "fragdelegate_backend_latency_seconds_count", {"model": model}
        ) == 1.0


@pytest.mark.unit
class TestExecuteAll:
    """Test suite for batched execution."""

    @pytest.mark.asyncio
    async def test_results_in_input_order(self):
        """R: Completion order does not change result order."""
        backend = SlowBackend(delays={"slow": 0.05, "fast": 0.0})
        dispatcher = Dispatcher(backend, _options(concurrency_limit=3))
        assignments = [_assignment("slow", index=0), _assignment("fast", index=1)]

        results = await dispatcher.execute_all(assignments)

        assert [r.result["prompt"] for r in results] == ["slow", "fast"]
        assert [r.fragment.fragment_id for r in results] == ["fragment-1", "fragment-2"]

    @pytest.mark.asyncio
    async def test_concurrency_bounded_with_pauses(self, recording_sleep):
        """R: At most concurrency_limit calls run together; pauses only between batches."""
        backend = SlowBackend()
        dispatcher = Dispatcher(
            backend,
            _options(concurrency_limit=2, inter_batch_pause_ms=500),
            sleep=recording_sleep,
        )
        assignments = [_assignment(f"p{i}", index=i) for i in range(5)]

        results = await dispatcher.execute_all(assignments)

        assert len(results) == 5
        assert backend.peak == 2
        assert recording_sleep.delays == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_failure_does_not_abort_siblings(self, backend_factory):
        """R: One failing fragment leaves the others untouched."""

        def responder(prompt, model, params):
            if prompt == "bad":
                raise BackendError("model crashed")
            return {"ok": prompt}

        dispatcher = Dispatcher(backend_factory(responder), _options(max_retries=2))
        assignments = [
            _assignment("good-1", index=0),
            _assignment("bad", index=1),
            _assignment("good-2", index=2),
        ]

        results = await dispatcher.execute_all(assignments)

        assert [r.success for r in results] == [True, False, True]
        assert results[1].error == "model crashed"
        assert results[1].attempts == 2

    @pytest.mark.asyncio
    async def test_empty_assignments(self, scripted_backend, recording_sleep):
        """R: Nothing to run means no calls and no pauses."""
        dispatcher = Dispatcher(scripted_backend, _options(), sleep=recording_sleep)

        assert await dispatcher.execute_all([]) == []
        assert scripted_backend.calls == []
        assert recording_sleep.delays == []
