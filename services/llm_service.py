# services/llm_service.py
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from config import settings
from core.errors import GenerationStreamError, ModelUnavailableError
from core.interfaces import IGenerationStream, ILLMService

logger = logging.getLogger(settings.LOGGER_NAME)


class GeminiGenerationStream(IGenerationStream):
    """Server-sent events of one `streamGenerateContent` call, read lazily."""

    def __init__(self, model: str, response: httpx.Response, client: httpx.AsyncClient, owns_client: bool):
        self.model = model
        self._response = response
        self._client = client
        self._owns_client = owns_client
        self._closed = False

    async def fragments(self) -> AsyncIterator[str]:
        try:
            async for line in self._response.aiter_lines():
                if not line.startswith("data:"):
                    continue
                payload = line[len("data:"):].strip()
                if not payload:
                    continue

                chunk = json.loads(payload)
                if not isinstance(chunk, dict):
                    raise ValueError(f"unexpected stream event: {payload[:100]}")
                error = chunk.get("error")
                if error is not None:
                    detail = error.get("message", "unknown") if isinstance(error, dict) else str(error)
                    raise GenerationStreamError(f"The model stopped with an error: {detail}")
                text = _chunk_text(chunk)
                if text:
                    yield text
        except GenerationStreamError:
            logger.error(f"Stream from '{self.model}' reported an error")
            raise
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Stream from '{self.model}' was interrupted: {e}", exc_info=True)
            raise GenerationStreamError(f"The response stream was interrupted: {e}")
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()
        if self._owns_client:
            await self._client.aclose()


def _chunk_text(chunk: Dict[str, Any]) -> str:
    parts = []
    for candidate in chunk.get("candidates") or []:
        for part in (candidate.get("content") or {}).get("parts") or []:
            if isinstance(part.get("text"), str):
                parts.append(part["text"])
    return "".join(parts)


class GeminiLLMService(ILLMService):
    """Streaming text generation through the Google Generative Language REST API."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initializes the service.

        Args:
            api_key: Provider API key.
            base_url: The REST root of the API.
            timeout: The request timeout in seconds.
            client: Shared HTTP client; when omitted each stream owns its own.
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def open_stream(self, model: str, prompt: str) -> GeminiGenerationStream:
        if not prompt or not prompt.strip():
            raise ValueError("Empty prompt provided")

        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        request = client.build_request(
            "POST",
            f"{self.base_url}/models/{model}:streamGenerateContent",
            params={"alt": "sse"},
            headers={"x-goog-api-key": self.api_key or ""},
            json={"contents": [{"role": "user", "parts": [{"text": prompt}]}]},
        )

        try:
            response = await client.send(request, stream=True)
        except Exception:
            if owns_client:
                await client.aclose()
            raise

        if response.is_error:
            await response.aread()
            detail = _error_message(response)
            status = response.status_code
            await response.aclose()
            if owns_client:
                await client.aclose()

            if status == 404 or "not found" in detail.lower():
                raise ModelUnavailableError(model, detail)
            raise RuntimeError(f"Generation API error ({status}) for '{model}': {detail}")

        logger.info(f"Streaming response from model '{model}'")
        return GeminiGenerationStream(model, response, client, owns_client)


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200]
