"""Provider-neutral streaming primitives."""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, TextIO

from ..errors import ServiceError
from ..logging import get_logger, trace
from .registry import ResolvedModel


class StreamError(ServiceError):
    """Failure while opening or reading a provider stream."""

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        status: Optional[int] = None,
        provider_message: str = "",
        partial: str = "",
    ) -> None:
        super().__init__(
            message, status=status, provider_message=provider_message, partial=partial
        )
        self.kind = kind


@dataclass(frozen=True)
class StreamEvent:
    """One item of a provider stream: ``delta``, ``done`` or ``error``."""

    kind: str
    text: str = ""
    error: Optional[StreamError] = None

    @classmethod
    def delta(cls, text: str) -> "StreamEvent":
        return cls("delta", text=text)

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls("done")

    @classmethod
    def failure(cls, error: StreamError) -> "StreamEvent":
        return cls("error", error=error)


class CancelToken:
    """Cancellation scope with an overall monotonic deadline."""

    def __init__(self, timeout: float | None = None) -> None:
        self.deadline = time.monotonic() + timeout if timeout else None
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self) -> None:
        if self._cancelled:
            raise StreamError("stream cancelled", kind="cancelled")
        if self.expired:
            raise StreamError("stream deadline exceeded: timeout", kind="timeout")


class StreamClient(Protocol):
    def stream(
        self, model: ResolvedModel, prompt: str, cancel: CancelToken
    ) -> Iterable[StreamEvent]:
        ...


def consume_stream(
    events: Iterable[StreamEvent],
    out: TextIO | None = None,
    cancel: CancelToken | None = None,
) -> str:
    """Echo deltas to ``out`` as they arrive and return their concatenation.

    Any error raised mid-stream is re-raised as :class:`StreamError` with the
    text received so far attached as ``partial``.
    """
    out = out or sys.stdout
    logger = get_logger("llm.stream")
    chunks: List[str] = []
    received = 0

    def partial() -> str:
        return "".join(chunks)

    try:
        for event in events:
            if cancel is not None:
                cancel.check()
            if event.kind == "delta":
                if not event.text:
                    continue
                chunks.append(event.text)
                received += len(event.text)
                trace(logger, "Stream delta", chars=len(event.text), total=received)
                out.write(event.text)
                out.flush()
            elif event.kind == "error":
                error = event.error or StreamError("stream error", kind="provider")
                error.partial = partial()
                raise error
            elif event.kind == "done":
                break
    except StreamError as exc:
        if chunks:
            out.write("\n")
        exc.partial = exc.partial or partial()
        raise
    except TimeoutError as exc:
        if chunks:
            out.write("\n")
        raise StreamError(f"read timeout: {exc}", kind="timeout", partial=partial()) from exc
    except (OSError, ValueError) as exc:
        if chunks:
            out.write("\n")
        raise StreamError(str(exc), kind="network", partial=partial()) from exc

    out.write("\n")
    out.flush()
    result = partial()
    if not result:
        raise StreamError("empty response", kind="protocol")
    logger.debug("Stream finished chars=%d", len(result))
    return result


__all__ = [
    "CancelToken",
    "StreamClient",
    "StreamError",
    "StreamEvent",
    "consume_stream",
]
