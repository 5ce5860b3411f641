"""
Name: Execute Fragmented Task Use Case

Responsibilities:
  - Orchestrate a delegation run: fragment -> assign -> execute -> merge
  - Degrade through the fallback chain (single call, then emergency answer)
  - Tag the TaskResult with the execution path, stage timings and run id

Collaborators:
  - infrastructure.text.fragmenter: Fragmenter / FragmenterConfig
  - application.dispatcher: assign_models / Dispatcher
  - application.merge: merge_results
  - application.fallback: single_call_fallback / emergency_task_result
  - crosscutting: logger, metrics, RunTimings, run context

Constraints:
  - execute() never raises (cancellation aside): every failure ends in a
    TaskResult on one of the three paths
  - Options are validated when the use case is built, not mid-run

Notes:
  - success is True only on the fragmented path
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional
from uuid import uuid4

from ...context import run_id_var
from ...crosscutting.config import Settings, get_settings
from ...crosscutting.exceptions import DelegateError
from ...crosscutting.logger import logger
from ...crosscutting.metrics import record_task_path
from ...crosscutting.timing import RunTimings
from ...domain.entities import ExecutionPath, TaskResult
from ...domain.services import InferenceBackend
from ...infrastructure.text.fragmenter import Fragmenter, FragmenterConfig
from ..dispatcher import DispatchOptions, Dispatcher, Sleep, assign_models
from ..fallback import emergency_task_result, single_call_fallback
from ..merge import MergeStrategy, merge_results


@dataclass(frozen=True)
class TaskOptions:
    """
    R: Options of one delegation run.

    Defaults match Settings; from_settings / from_mapping build the usual
    instances.
    """

    mode: str = "semantic"
    max_tokens_per_fragment: int = 2048
    merge_strategy: str = MergeStrategy.COMPREHENSIVE.value
    force_model: Optional[str] = None
    concurrency_limit: int = 3
    max_retries: int = 3
    timeout_ms: int = 30000
    retry_backoff_ms: int = 1000
    inter_batch_pause_ms: int = 1000
    default_model: str = "llama3.2"

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "TaskOptions":
        base = cls(
            mode=settings.fragment_mode,
            max_tokens_per_fragment=settings.max_tokens_per_fragment,
            merge_strategy=settings.merge_strategy,
            concurrency_limit=settings.concurrency_limit,
            max_retries=settings.max_retries,
            timeout_ms=settings.timeout_ms,
            retry_backoff_ms=settings.retry_backoff_ms,
            inter_batch_pause_ms=settings.inter_batch_pause_ms,
            default_model=settings.default_model,
        )
        return replace(base, **overrides) if overrides else base

    @classmethod
    def from_mapping(
        cls,
        options: Optional[Mapping[str, Any]],
        settings: Settings | None = None,
    ) -> "TaskOptions":
        """
        R: Caller options layered over settings.

        Unknown keys and None values are ignored.
        """
        known = {f.name for f in fields(cls)}
        overrides = {
            key: value
            for key, value in (options or {}).items()
            if key in known and value is not None
        }
        ignored = sorted(set(options or {}) - known)
        if ignored:
            logger.debug("Ignoring unknown task options", extra={"ignored": ignored})
        return cls.from_settings(settings or get_settings(), **overrides)

    def fragmenter_config(self) -> FragmenterConfig:
        return FragmenterConfig(
            mode=self.mode, max_tokens_per_fragment=self.max_tokens_per_fragment
        )

    def dispatch_options(self) -> DispatchOptions:
        return DispatchOptions(
            concurrency_limit=self.concurrency_limit,
            max_retries=self.max_retries,
            timeout_ms=self.timeout_ms,
            retry_backoff_ms=self.retry_backoff_ms,
            inter_batch_pause_ms=self.inter_batch_pause_ms,
        )


class ExecuteFragmentedTaskUseCase:
    """
    R: Use case for running a large prompt across several models.

    Raises:
        ValueError: At construction, for invalid options
    """

    def __init__(
        self,
        backend: InferenceBackend,
        options: TaskOptions | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.options = options or TaskOptions()
        self.fragmenter = Fragmenter(self.options.fragmenter_config())
        self.dispatcher = Dispatcher(
            backend, self.options.dispatch_options(), sleep=sleep
        )

    async def execute(self, text: str) -> TaskResult:
        run_token = run_id_var.set(str(uuid4()))
        try:
            return await self._run(text)
        finally:
            run_id_var.reset(run_token)

    async def _run(self, text: str) -> TaskResult:
        timings = RunTimings()
        fragments_count: Optional[int] = None

        try:
            with timings.stage("fragment"):
                fragments = self.fragmenter.fragment(text)
            fragments_count = len(fragments)

            assignments = assign_models(fragments, self.options.force_model)
            logger.info(
                "Fragments assigned",
                extra={
                    "fragments": fragments_count,
                    "models": [a.model.name for a in assignments],
                },
            )

            with timings.stage("execute"):
                results = await self.dispatcher.execute_all(assignments)

            with timings.stage("merge"):
                merged = merge_results(results, self.options.merge_strategy)
        except Exception as e:
            error = DelegateError.wrap(e)
            logger.exception(
                "Fragmented execution failed, falling back",
                extra={
                    "error_type": type(e).__name__,
                    "error_code": error.error_code,
                    "error_id": error.error_id,
                },
            )
            return await self._fallback(text, error, timings, fragments_count)

        path = ExecutionPath.FRAGMENTED
        record_task_path(path.value)
        metadata = self._metadata(timings)
        logger.info("Delegation run completed", extra={"path": path.value, **metadata})
        return TaskResult(
            success=True,
            path=path,
            result=merged,
            fragments_count=fragments_count,
            models_used=merged["models_used"],
            metadata=metadata,
        )

    async def _fallback(
        self,
        text: str,
        error: DelegateError,
        timings: RunTimings,
        fragments_count: Optional[int],
    ) -> TaskResult:
        try:
            with timings.stage("fallback"):
                fallback = await single_call_fallback(
                    self.dispatcher, text, self.options.default_model
                )
        except Exception as fallback_error:
            logger.error(
                "Single-call fallback failed",
                extra={
                    "error": str(fallback_error),
                    "error_type": type(fallback_error).__name__,
                },
            )
            return emergency_task_result(
                text,
                error,
                fallback_error=fallback_error,
                fragments_count=fragments_count,
                metadata=self._metadata(timings),
            )

        path = ExecutionPath.FALLBACK_SINGLE_CALL
        record_task_path(path.value)
        logger.info("Single-call fallback succeeded", extra={"path": path.value})
        return TaskResult(
            success=False,
            path=path,
            fragments_count=fragments_count,
            fallback=fallback,
            error=str(error) or type(error).__name__,
            error_detail=error.to_response().to_dict(),
            metadata=self._metadata(timings),
        )

    @staticmethod
    def _metadata(timings: RunTimings) -> dict:
        return {"run_id": run_id_var.get(), "timings": timings.to_dict()}
