"""
Name: Ollama Inference Backend

Responsibilities:
  - Implement InferenceBackend over the Ollama HTTP API (/api/generate)
  - Map sampling parameters to Ollama options
  - Translate HTTP/transport failures into BackendError / BackendTimeoutError

Collaborators:
  - domain.services.InferenceBackend: contract implemented
  - httpx: async HTTP client
  - crosscutting.exceptions: typed errors

Constraints:
  - Non-streaming generation only (stream=false)
  - No retry here: the dispatcher owns retries and timeouts per fragment

Notes:
  - Works with any server exposing the same endpoint (LM Studio proxies, ...)
  - The client can be injected (tests use httpx.MockTransport)
"""

from __future__ import annotations

from typing import Optional

import httpx

from ....crosscutting.exceptions import BackendError, BackendTimeoutError
from ....crosscutting.logger import logger
from ....domain.entities import InvocationParams

_GENERATE_PATH = "/api/generate"


class OllamaInferenceBackend:
    """
    R: Ollama implementation of InferenceBackend.

    Returns the raw "response" text; parsing happens in the dispatcher.
    """

    def __init__(
        self,
        endpoint: str = "http://localhost:11434",
        *,
        timeout_s: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not endpoint:
            raise ValueError("endpoint is required for OllamaInferenceBackend")
        self.endpoint = endpoint.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        logger.info(
            "OllamaInferenceBackend initialized", extra={"endpoint": self.endpoint}
        )

    async def invoke(
        self, prompt: str, model_name: str, params: InvocationParams
    ) -> str:
        """
        R: Run one non-streaming generation.

        Raises:
            BackendTimeoutError: If the HTTP call times out
            BackendError: On transport errors, non-2xx status or bad payload
        """
        body = {
            "model": model_name,
            "prompt": prompt,
            "options": {
                "temperature": params.temperature,
                "num_predict": params.max_tokens,
            },
            "stream": False,
        }

        try:
            response = await self._client.post(
                f"{self.endpoint}{_GENERATE_PATH}", json=body
            )
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(
                f"Ollama call timed out for {model_name}", original_error=e
            ) from e
        except httpx.HTTPError as e:
            raise BackendError(
                f"Ollama transport error for {model_name}: {e}", original_error=e
            ) from e

        if response.status_code >= 400:
            raise BackendError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(
                "Ollama returned a non-JSON body", original_error=e
            ) from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise BackendError("Ollama response has no 'response' field")
        return text

    async def aclose(self) -> None:
        await self._client.aclose()
