"""Async HTTP client for an OpenAI-compatible chat-completions service.

Uses httpx with configurable timeouts and tenacity for retry with
exponential backoff on 429/503 (overloaded/cold start) and connection errors.
Retries live here at the transport boundary; pipeline stages never retry.
"""

import logging
import time
from typing import Protocol

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import Settings
from models import ImagePart, InferenceOptions, Message, ModelResponse, TextPart

logger = logging.getLogger(__name__)


class ModelProvider(Protocol):
    """Anything that can complete a conversation: the HTTP client or a test double."""

    model: str

    async def complete(
        self,
        messages: list[Message],
        options: InferenceOptions | None = None,
    ) -> ModelResponse: ...


class ModelServiceUnavailable(Exception):
    """Model service is temporarily unavailable (retryable: 429, 503, connection error)."""


class ModelServiceError(Exception):
    """Model service returned a non-retryable error (400, 401, 500)."""


class ModelClient:
    """Chat-completions client bound to a single model id."""

    def __init__(
        self,
        settings: Settings,
        model: str,
        base_url: str | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        retry_backoff: float | None = None,
    ):
        self.model = model
        self._base_url = (base_url or settings.MODEL_BASE_URL).rstrip("/")
        self._retry_attempts = retry_attempts if retry_attempts is not None else settings.MODEL_RETRY_ATTEMPTS
        self._retry_delay = retry_delay if retry_delay is not None else settings.MODEL_RETRY_DELAY
        self._retry_backoff = retry_backoff if retry_backoff is not None else settings.MODEL_RETRY_BACKOFF

        headers = {}
        if settings.MODEL_API_KEY:
            headers["Authorization"] = f"Bearer {settings.MODEL_API_KEY}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=httpx.Timeout(
                connect=float(settings.MODEL_CONNECT_TIMEOUT),
                read=float(settings.MODEL_TIMEOUT_SECONDS),
                write=30.0,
                pool=30.0,
            ),
        )

    async def aclose(self):
        await self._client.aclose()

    async def complete(
        self,
        messages: list[Message],
        options: InferenceOptions | None = None,
    ) -> ModelResponse:
        """Send a conversation to the model and return its text reply.

        Raises ModelServiceUnavailable (after retries) or ModelServiceError.
        """
        options = options or InferenceOptions()
        payload: dict = {
            "model": self.model,
            "messages": [to_wire_message(m) for m in messages],
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
        }
        if options.json_mode:
            payload["response_format"] = {"type": "json_object"}

        start = time.monotonic()
        data = await self._complete_with_retry(payload)
        latency_ms = int((time.monotonic() - start) * 1000)

        choices = data.get("choices") or [{}]
        usage = data.get("usage") or {}
        return ModelResponse(
            content=(choices[0].get("message") or {}).get("content") or "",
            model=data.get("model", self.model),
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            latency_ms=latency_ms,
        )

    async def _complete_with_retry(self, payload: dict) -> dict:
        """Retry wrapper, configured from the client settings."""

        @retry(
            retry=retry_if_exception_type(ModelServiceUnavailable),
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                exp_base=self._retry_backoff,
                max=60,
            ),
            reraise=True,
            before_sleep=lambda state: logger.warning(
                "Model service unavailable, retrying in %.1fs (attempt %d/%d)",
                state.next_action.sleep,  # type: ignore[union-attr]
                state.attempt_number,
                self._retry_attempts,
            ),
        )
        async def _do_complete() -> dict:
            return await self._send_complete(payload)

        return await _do_complete()

    async def _send_complete(self, payload: dict) -> dict:
        """Send a single chat-completions request."""
        try:
            resp = await self._client.post("/chat/completions", json=payload)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning("Model service connection failed: %s", e)
            raise ModelServiceUnavailable(f"Cannot connect to model service: {e}") from e
        except httpx.ReadTimeout as e:
            logger.warning("Model service read timeout: %s", e)
            raise ModelServiceUnavailable(f"Model service read timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Model service HTTP error: %s", e)
            raise ModelServiceError(f"Model service HTTP error: {e}") from e

        if resp.status_code in (429, 503):
            detail = _error_detail(resp, "Service unavailable")
            logger.warning("Model service returned %d: %s", resp.status_code, detail)
            raise ModelServiceUnavailable(detail)

        if resp.status_code != 200:
            detail = _error_detail(resp, f"HTTP {resp.status_code}")
            logger.error("Model service error %d: %s", resp.status_code, detail)
            raise ModelServiceError(detail)

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("Model service returned a non-JSON body: %s", resp.text[:200])
            raise ModelServiceError(f"Model service returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ModelServiceError("Model service returned an unexpected response body")
        return data

    async def health(self) -> dict:
        """Check model service reachability. Returns a status dict, never raises."""
        try:
            resp = await self._client.get("/models", timeout=10.0)
            return {"status": "healthy" if resp.status_code == 200 else "degraded", "ready": resp.status_code == 200}
        except Exception as e:
            logger.warning("Model service health check failed: %s", e)
            return {"status": "unreachable", "error": str(e)}


def to_wire_message(message: Message) -> dict:
    """Convert a Message to the chat-completions wire format.

    System and assistant turns carry text only; user turns are multimodal.
    """
    if message.role != "user":
        text = "\n".join(p.text for p in message.content if isinstance(p, TextPart))
        return {"role": message.role, "content": text}

    parts = []
    for part in message.content:
        if isinstance(part, ImagePart):
            parts.append({
                "type": "image_url",
                "image_url": {"url": f"data:{part.media_type};base64,{part.base64}", "detail": "high"},
            })
        else:
            parts.append({"type": "text", "text": part.text})
    return {"role": "user", "content": parts}


def _error_detail(resp: httpx.Response, default: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message", default)
    return body.get("detail") or error or default
