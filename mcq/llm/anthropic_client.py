"""Streaming client for the Anthropic messages API."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..config import DEFAULT_REQUEST_TIMEOUT
from ..logging import get_logger, log_fields, trace
from .registry import DEFAULT_MAX_TOKENS, ResolvedModel
from .streaming import CancelToken, StreamError, StreamEvent

MESSAGES_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"

_CONTEXT_HINTS = ("context_length", "input too long", "maximum context")


class AnthropicClient:
    """Posts a single-turn message request and yields SSE deltas."""

    def __init__(
        self,
        *,
        url: str = MESSAGES_URL,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        out: Any = None,
    ) -> None:
        self.url = url
        self.request_timeout = request_timeout
        self._out = out
        self._logger = get_logger("llm.anthropic")

    def stream(
        self, model: ResolvedModel, prompt: str, cancel: CancelToken
    ) -> Iterator[StreamEvent]:
        descriptor = model.descriptor
        payload: Dict[str, Any] = {
            "model": descriptor.wire_id,
            "max_tokens": descriptor.max_tokens or DEFAULT_MAX_TOKENS,
            "stream": True,
            "messages": [{"role": "user", "content": prompt}],
        }
        data = json.dumps(payload).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "x-api-key": model.api_key,
            "anthropic-version": API_VERSION,
        }
        request = Request(self.url, data=data, headers=headers, method="POST")
        self._logger.info(
            log_fields("Sending request", model=descriptor.wire_id, prompt_chars=len(prompt))
        )

        cancel.check()
        try:
            response = urlopen(request, timeout=self.request_timeout)  # type: ignore[arg-type]
        except HTTPError as exc:
            body = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            self._warn_context_size(body)
            raise StreamError(
                f"anthropic API returned status {exc.code}",
                kind="http",
                status=exc.code,
                provider_message=_error_message(body) or body.strip(),
            ) from exc
        except TimeoutError as exc:
            raise StreamError(f"request timeout: {exc}", kind="timeout") from exc
        except URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise StreamError(f"request timeout: {exc.reason}", kind="timeout") from exc
            raise StreamError(f"connection failed: {exc.reason}", kind="network") from exc

        with response:
            status = getattr(response, "status", 200)
            if status != 200:
                body = response.read().decode("utf-8", errors="ignore")
                self._warn_context_size(body)
                raise StreamError(
                    f"anthropic API returned status {status}",
                    kind="http",
                    status=status,
                    provider_message=_error_message(body) or body.strip(),
                )
            yield from self._read_events(response, cancel)

    def _read_events(self, response: Any, cancel: CancelToken) -> Iterator[StreamEvent]:
        while True:
            cancel.check()
            try:
                raw = response.readline()
            except TimeoutError as exc:
                raise StreamError(f"read timeout: {exc}", kind="timeout") from exc
            except OSError as exc:
                raise StreamError(f"connection error: {exc}", kind="network") from exc
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").strip()
            if not line.startswith("data: "):
                continue
            data = line[len("data: ") :]
            if data == "[DONE]":
                break
            try:
                event = json.loads(data)
            except json.JSONDecodeError as exc:
                self._logger.warning("Skipping malformed stream event: %s", exc)
                continue
            trace(self._logger, "Stream event", type=event.get("type"))

            event_type = event.get("type")
            if event_type == "content_block_delta":
                text = (event.get("delta") or {}).get("text") or ""
                if text:
                    yield StreamEvent.delta(text)
            elif event_type == "error":
                message = (event.get("error") or {}).get("message") or "unknown provider error"
                yield StreamEvent.failure(
                    StreamError(message, kind="provider", provider_message=message)
                )
                return
            elif event_type == "message_stop":
                break
        yield StreamEvent.done()

    def _warn_context_size(self, body: str) -> None:
        lowered = body.lower()
        if self._out is not None and any(hint in lowered for hint in _CONTEXT_HINTS):
            self._out.write("\n⚠️  Error: Context may be too large for Claude model\n")
            self._out.write(
                "💡 Try reducing context with --no-context or specific context flags\n"
            )


def _error_message(body: str) -> Optional[str]:
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return None


__all__ = ["API_VERSION", "AnthropicClient", "MESSAGES_URL"]
