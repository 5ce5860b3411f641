"""
Name: Prometheus Metrics

Responsibilities:
  - Define delegation metrics on a private registry
  - Provide small recording helpers for the dispatcher and the use case
  - Expose the registry for the CLI textfile export (--metrics-file)

Collaborators:
  - application/dispatcher.py: attempts and outcomes
  - crosscutting/timing.py: backend latency (CallTimer)
  - application/usecases: task outcome by execution path
  - cli.py: writes the registry with prometheus_client.write_to_textfile

Constraints:
  - Low cardinality labels only (model, status, path - NOT fragment ids)

Notes:
  - A private CollectorRegistry keeps these metrics out of the default
    registry of a host application
"""

from prometheus_client import CollectorRegistry, Counter, Histogram

_registry = CollectorRegistry()

_fragment_attempts_total = Counter(
    "fragdelegate_fragment_attempts_total",
    "Backend calls made for fragments (including retries)",
    ["model"],
    registry=_registry,
)

_fragments_total = Counter(
    "fragdelegate_fragments_total",
    "Fragments that reached a terminal state",
    ["model", "status"],
    registry=_registry,
)

_backend_latency = Histogram(
    "fragdelegate_backend_latency_seconds",
    "Latency of successful backend calls",
    ["model"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    registry=_registry,
)

_tasks_total = Counter(
    "fragdelegate_tasks_total",
    "Fragmented tasks by execution path",
    ["path"],
    registry=_registry,
)


def record_fragment_attempt(model: str) -> None:
    _fragment_attempts_total.labels(model=model).inc()


def record_fragment_outcome(model: str, status: str) -> None:
    _fragments_total.labels(model=model, status=status).inc()


def observe_backend_latency(model: str, seconds: float) -> None:
    _backend_latency.labels(model=model).observe(seconds)


def record_task_path(path: str) -> None:
    _tasks_total.labels(path=path).inc()


def get_registry() -> CollectorRegistry:
    return _registry
