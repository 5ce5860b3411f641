"""
Name: Fragment Dispatcher

Responsibilities:
  - Select a model profile (and temperature) for each fragment
  - Execute one fragment with timeout and bounded retry
  - Execute all fragments in batches of concurrency_limit, in order
  - Record attempts, outcomes and latencies

Collaborators:
  - domain.services.InferenceBackend: the injected backend
  - domain.model_catalog: type -> role -> profile, type -> temperature
  - infrastructure.services.retry: tenacity controller (linear backoff)
  - infrastructure.services.llm.response_parser: payload -> dict
  - crosscutting.metrics / timing / logger

Constraints:
  - execute_fragment never raises for backend failures: it always returns
    exactly one FragmentResult (success or failure)
  - A failed fragment never cancels its siblings
  - Results come back in assignment order, whatever the completion order

State machine per fragment:
  Pending -> Running -> Succeeded
                     -> Retrying -> Running (attempt + 1)
                     -> Failed (attempts exhausted)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from ..context import fragment_id_var, model_var
from ..crosscutting.exceptions import BackendTimeoutError
from ..crosscutting.logger import logger
from ..crosscutting.metrics import (
    record_fragment_attempt,
    record_fragment_outcome,
)
from ..crosscutting.timing import CallTimer
from ..domain.entities import (
    Assignment,
    Fragment,
    FragmentResult,
    FragmentStatus,
    InvocationParams,
    ModelProfile,
)
from ..domain.model_catalog import (
    get_profile,
    profile_for_role,
    role_for_type,
    temperature_for_type,
)
from ..domain.services import InferenceBackend
from ..infrastructure.services.llm.response_parser import parse_response
from ..infrastructure.services.retry import create_async_retrying

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class DispatchOptions:
    """
    R: Execution limits of a dispatch run.

    Attributes:
        concurrency_limit: Fragments running simultaneously (batch size)
        max_retries: Backend calls per fragment before it is marked failed
        timeout_ms: Timeout of each backend call
        retry_backoff_ms: Linear backoff unit (wait attempt * unit)
        inter_batch_pause_ms: Pause between two batches
    """

    concurrency_limit: int = 3
    max_retries: int = 3
    timeout_ms: int = 30000
    retry_backoff_ms: int = 1000
    inter_batch_pause_ms: int = 1000

    def __post_init__(self):
        if self.concurrency_limit <= 0:
            raise ValueError(f"concurrency_limit must be > 0, got {self.concurrency_limit}")
        if self.max_retries <= 0:
            raise ValueError(f"max_retries must be > 0, got {self.max_retries}")
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {self.timeout_ms}")
        if self.retry_backoff_ms < 0 or self.inter_batch_pause_ms < 0:
            raise ValueError("retry_backoff_ms and inter_batch_pause_ms must be >= 0")


def select_model(fragment: Fragment, force_model: Optional[str] = None) -> ModelProfile:
    """
    R: Pick the model profile for a fragment.

    A forced model wins over the type table; the temperature always comes
    from the fragment type and overrides the profile default.
    """
    if force_model:
        profile = get_profile(force_model)
    else:
        profile = profile_for_role(role_for_type(fragment.type))
    return profile.with_temperature(temperature_for_type(fragment.type))


def assign_models(
    fragments: Sequence[Fragment], force_model: Optional[str] = None
) -> List[Assignment]:
    return [
        Assignment(fragment=fragment, model=select_model(fragment, force_model))
        for fragment in fragments
    ]


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    """R: Split a sequence into consecutive lists of at most size items."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class Dispatcher:
    """
    R: Runs assignments against an InferenceBackend.

    The sleep function is injectable so tests can observe (and skip)
    backoff and inter-batch pauses.
    """

    def __init__(
        self,
        backend: InferenceBackend,
        options: DispatchOptions | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._backend = backend
        self.options = options or DispatchOptions()
        self._sleep = sleep

    async def call_backend(self, prompt: str, model: ModelProfile) -> Dict[str, Any]:
        """
        R: One backend call under the configured timeout, parsed to a dict.

        Raises:
            BackendTimeoutError: If the call exceeds timeout_ms
            Exception: Whatever the backend raised
        """
        params = InvocationParams(temperature=model.temperature, max_tokens=model.max_tokens)
        timeout_ms = self.options.timeout_ms

        with CallTimer(model.name):
            try:
                payload = await asyncio.wait_for(
                    self._backend.invoke(prompt, model.name, params),
                    timeout=timeout_ms / 1000,
                )
            except BackendTimeoutError:
                raise
            except asyncio.TimeoutError as e:
                raise BackendTimeoutError(
                    f"Timeout after {timeout_ms}ms", original_error=e
                ) from e

        return parse_response(payload)

    async def execute_fragment(self, assignment: Assignment) -> FragmentResult:
        """
        R: Execute one fragment until success or attempts are exhausted.

        Returns:
            FragmentResult with success=True and the parsed result, or
            success=False and the last error message
        """
        fragment, model = assignment.fragment, assignment.model
        fragment_token = fragment_id_var.set(fragment.fragment_id)
        model_token = model_var.set(model.name)
        attempts = 0

        retrying = create_async_retrying(
            max_attempts=self.options.max_retries,
            backoff_seconds=self.options.retry_backoff_ms / 1000,
            sleep=self._sleep,
        )

        try:
            try:
                async for attempt in retrying:
                    with attempt:
                        attempts = attempt.retry_state.attempt_number
                        logger.debug(
                            "Fragment running",
                            extra={
                                "status": FragmentStatus.RUNNING.value,
                                "attempt": attempts,
                                "fragment_type": fragment.type.value,
                            },
                        )
                        record_fragment_attempt(model.name)
                        result = await self.call_backend(fragment.content, model)
            except Exception as e:
                record_fragment_outcome(model.name, FragmentStatus.FAILED.value)
                logger.error(
                    "Fragment failed after retries",
                    extra={
                        "status": FragmentStatus.FAILED.value,
                        "attempts": attempts,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                return FragmentResult(
                    fragment=fragment,
                    model=model,
                    success=False,
                    error=str(e) or type(e).__name__,
                    attempts=attempts,
                )

            record_fragment_outcome(model.name, FragmentStatus.SUCCEEDED.value)
            logger.info(
                "Fragment succeeded",
                extra={"status": FragmentStatus.SUCCEEDED.value, "attempts": attempts},
            )
            return FragmentResult(
                fragment=fragment,
                model=model,
                success=True,
                result=result,
                attempts=attempts,
            )
        finally:
            model_var.reset(model_token)
            fragment_id_var.reset(fragment_token)

    async def execute_all(self, assignments: Sequence[Assignment]) -> List[FragmentResult]:
        """
        R: Execute assignments in batches of concurrency_limit.

        Each batch runs concurrently; a fixed pause separates batches.

        Returns:
            One FragmentResult per assignment, in assignment order
        """
        results: List[FragmentResult] = []
        batches = chunked(assignments, self.options.concurrency_limit)
        pause = self.options.inter_batch_pause_ms / 1000

        for i, batch in enumerate(batches):
            logger.debug(
                "Executing batch",
                extra={"batch": i + 1, "batches": len(batches), "size": len(batch)},
            )
            results.extend(
                await asyncio.gather(*(self.execute_fragment(a) for a in batch))
            )
            if pause and i < len(batches) - 1:
                await self._sleep(pause)

        return results
