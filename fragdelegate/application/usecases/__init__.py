"""Application use cases."""

from .execute_fragmented_task import ExecuteFragmentedTaskUseCase, TaskOptions

__all__ = ["ExecuteFragmentedTaskUseCase", "TaskOptions"]
