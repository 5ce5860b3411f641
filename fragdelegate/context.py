"""
Name: Run Context (ContextVars)

Responsibilities:
  - Store run-scoped data (run_id, fragment_id, model)
  - Provide async-safe context without parameter passing
  - Enable structured logging with run correlation

Collaborators:
  - application/usecases: sets run_id at the start of a delegation run
  - application/dispatcher: sets fragment_id/model inside each fragment task
  - crosscutting/logger.py: reads context for log enrichment

Constraints:
  - Only primitive types (str) for safety
  - Default empty string (never None) for JSON serialization

Notes:
  - asyncio tasks copy the current context, so values set inside a
    fragment task never leak into sibling tasks
"""

from contextvars import ContextVar

# R: Delegation run identifier (UUID) - set by the use case
run_id_var: ContextVar[str] = ContextVar("run_id", default="")

# R: Fragment currently executing - set by the dispatcher
fragment_id_var: ContextVar[str] = ContextVar("fragment_id", default="")

# R: Model profile name of the current call - set by the dispatcher
model_var: ContextVar[str] = ContextVar("model", default="")


def get_context_dict() -> dict:
    """
    R: Get current context as dict for log enrichment.

    Returns:
        Dict with non-empty context values only
    """
    ctx = {}

    if val := run_id_var.get():
        ctx["run_id"] = val
    if val := fragment_id_var.get():
        ctx["fragment_id"] = val
    if val := model_var.get():
        ctx["model"] = val

    return ctx
