"""
Name: Backend Connectivity Probe

Responsibilities:
  - Send a tiny probe prompt to each model
  - Report per-model status, response and latency

Collaborators:
  - domain.services.InferenceBackend
  - domain.model_catalog.MODEL_PROFILES: default model list

Notes:
  - Models are probed one after another; a failure is reported, never raised
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, Optional

from ..crosscutting.logger import logger
from ..crosscutting.timing import CallTimer
from ..domain.entities import InvocationParams
from ..domain.model_catalog import MODEL_PROFILES
from ..domain.services import InferenceBackend

PROBE_PROMPT = 'Connectivity test. Reply with "OK".'
PROBE_PARAMS = InvocationParams(temperature=0.1, max_tokens=10)


async def check_connectivity(
    backend: InferenceBackend,
    models: Optional[Iterable[str]] = None,
    timeout_ms: int = 10000,
) -> Dict[str, Dict[str, Any]]:
    """
    R: Probe each model and report its reachability.

    Returns:
        {model: {"status": "connected", "response", "latency_ms"}}
        or {model: {"status": "error", "error"}}
    """
    names = list(models) if models is not None else list(MODEL_PROFILES)
    report: Dict[str, Dict[str, Any]] = {}

    for name in names:
        try:
            with CallTimer() as timer:
                response = await asyncio.wait_for(
                    backend.invoke(PROBE_PROMPT, name, PROBE_PARAMS),
                    timeout=timeout_ms / 1000,
                )
        except asyncio.TimeoutError:
            report[name] = {"status": "error", "error": f"Timeout after {timeout_ms}ms"}
        except Exception as e:
            report[name] = {"status": "error", "error": str(e) or type(e).__name__}
        else:
            report[name] = {
                "status": "connected",
                "response": response,
                "latency_ms": timer.elapsed_ms,
            }

        logger.info(
            "Connectivity probe",
            extra={"model": name, "status": report[name]["status"]},
        )

    return report
