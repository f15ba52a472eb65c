"""Streaming client for OpenAI chat completions via the official SDK."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator

import openai
from openai import OpenAI

from ..config import DEFAULT_REQUEST_TIMEOUT
from ..logging import get_logger, log_fields, trace
from .registry import GPT5_PREFIX, ResolvedModel
from .streaming import CancelToken, StreamError, StreamEvent


def _default_factory(api_key: str, timeout: float) -> Any:
    return OpenAI(api_key=api_key, timeout=timeout, max_retries=0)


class OpenAIClient:
    """Yields ``choices[0].delta.content`` from a streamed chat completion."""

    def __init__(
        self,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client_factory: Callable[[str, float], Any] | None = None,
    ) -> None:
        self.request_timeout = request_timeout
        self._factory = client_factory or _default_factory
        self._logger = get_logger("llm.openai")

    @staticmethod
    def build_request(model: ResolvedModel, prompt: str) -> Dict[str, Any]:
        descriptor = model.descriptor
        request: Dict[str, Any] = {
            "model": descriptor.wire_id,
            "messages": [{"role": "user", "content": prompt}],
            "stream": True,
        }
        # GPT-5 models reject max_tokens.
        if descriptor.max_tokens and not descriptor.wire_id.startswith(GPT5_PREFIX):
            request["max_tokens"] = descriptor.max_tokens
        return request

    def stream(
        self, model: ResolvedModel, prompt: str, cancel: CancelToken
    ) -> Iterator[StreamEvent]:
        request = self.build_request(model, prompt)
        self._logger.info(
            log_fields(
                "Sending request",
                model=request["model"],
                prompt_chars=len(prompt),
                max_tokens=request.get("max_tokens", "omitted"),
            )
        )
        cancel.check()
        client = self._factory(model.api_key, self.request_timeout)
        try:
            chunks = client.chat.completions.create(**request)
            for chunk in chunks:
                cancel.check()
                text = _chunk_text(chunk)
                if text:
                    trace(self._logger, "Stream chunk", chars=len(text))
                    yield StreamEvent.delta(text)
        except openai.APITimeoutError as exc:
            raise StreamError(f"request timeout: {exc}", kind="timeout") from exc
        except openai.APIConnectionError as exc:
            raise StreamError(f"connection error: {exc}", kind="network") from exc
        except openai.APIStatusError as exc:
            raise StreamError(
                f"openai API returned status {exc.status_code}",
                kind="http",
                status=exc.status_code,
                provider_message=_status_message(exc),
            ) from exc
        except openai.OpenAIError as exc:
            raise StreamError(str(exc), kind="provider", provider_message=str(exc)) from exc
        yield StreamEvent.done()


def _chunk_text(chunk: Any) -> str:
    choices = getattr(chunk, "choices", None)
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    content = getattr(delta, "content", None)
    return content if isinstance(content, str) else ""


def _status_message(exc: Any) -> str:
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return getattr(exc, "message", "") or str(exc)


__all__ = ["OpenAIClient"]
