"""
Name: Delegation Timing

Responsibilities:
  - Time one backend call and feed the latency histogram (CallTimer)
  - Time the stages of a delegation run for TaskResult metadata (RunTimings)

Collaborators:
  - application/dispatcher.py: wraps each backend call in a CallTimer
  - application/connectivity.py: times probes (no histogram)
  - application/usecases: fragment / execute / merge / fallback stages
  - crosscutting/metrics.py: observe_backend_latency

Notes:
  - perf_counter is wall-clock, so awaited code is measured as it runs
  - Only calls that complete are observed; timeouts and errors are counted
    by the fragment outcome metrics instead
"""

import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from .metrics import observe_backend_latency


class CallTimer:
    """
    R: Context manager timing one backend call.

    Usage:
        with CallTimer("mistral") as timer:
            payload = await backend.invoke(...)
        timer.elapsed_ms
    """

    def __init__(self, model: Optional[str] = None):
        self.model = model
        self._started: Optional[float] = None
        self.elapsed_seconds = 0.0

    def __enter__(self) -> "CallTimer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed_seconds = time.perf_counter() - self._started
        if exc_type is None and self.model:
            observe_backend_latency(self.model, self.elapsed_seconds)

    @property
    def elapsed_ms(self) -> float:
        return round(self.elapsed_seconds * 1000, 2)


class RunTimings:
    """R: Per-stage durations of one run, plus the total since creation."""

    def __init__(self):
        self._started = time.perf_counter()
        self._stages: Dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        # R: Recorded even when the stage raises
        started = time.perf_counter()
        try:
            yield
        finally:
            self._stages[f"{name}_ms"] = _ms_since(started)

    def to_dict(self) -> Dict[str, float]:
        return {**self._stages, "total_ms": _ms_since(self._started)}


def _ms_since(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
