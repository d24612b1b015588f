"""
Typed event stream on top of the SSE frame decoder.

Each dispatched event is decoded into a caller-specified schema:

    stream = Stream(new_decoder(response), ChatCompletionChunk)
    with stream:
        for chunk in stream:
            ...

Conventions handled here:
- ``[DONE]`` marks the logical end of output; remaining events are drained
  without decoding so the connection is consumed to the end.
- A payload with a top-level ``error`` key fails the stream with UpstreamError.
- Events typed under ``wrap_prefix`` are decoded as
  ``{"event": <type>, "data": <payload>}``.
- Decoding is strict: schemas derive from StrictModel, so unknown fields and
  mismatched types fail.
"""

import logging
from typing import Any, Generic, Iterator, Optional, Type, TypeVar

import orjson
from pydantic import TypeAdapter, ValidationError

from app.streaming.sse import Event, FrameDecoder
from app.utils.exceptions import DecodeError, StreamError, UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DONE_SENTINEL = b"[DONE]"
WRAPPED_EVENT_PREFIX = "thread."


def probe_error(payload: Any) -> Optional[str]:
    """Return the upstream error message if the payload has a top-level ``error``."""
    if not isinstance(payload, dict) or "error" not in payload:
        return None
    value = payload["error"]
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return orjson.dumps(value).decode()


class Stream(Generic[T]):
    """Pull-based iterator of schema-validated chunks."""

    def __init__(
        self,
        decoder: Optional[FrameDecoder],
        schema: Type[T],
        err: Optional[StreamError] = None,
        wrap_prefix: str = WRAPPED_EVENT_PREFIX,
    ):
        self._decoder = decoder
        self._adapter: TypeAdapter[T] = TypeAdapter(schema)
        self._wrap_prefix = wrap_prefix
        self._current: Optional[T] = None
        self._err = err
        self._done = False

    def next(self) -> bool:
        """
        Advance to the next decoded chunk.

        Returns False when the stream has ended or failed; check err() to tell
        the two apart.
        """
        if self._err is not None or self._decoder is None:
            return False

        while self._decoder.next():
            if self._done:
                continue

            event = self._decoder.event()
            if event.data.startswith(DONE_SENTINEL):
                # Keep iterating so the full body is consumed
                logger.debug("Received [DONE], draining remaining events")
                self._done = True
                continue

            # Keep-alive and comment-only records carry no payload
            if not event.data.strip():
                continue

            try:
                self._current = self._decode(event)
            except StreamError as e:
                self._err = e
                return False
            return True

        # decoder.next() may be False because of an error
        self._err = self._decoder.err()
        return False

    def current(self) -> T:
        return self._current

    def err(self) -> Optional[StreamError]:
        return self._err

    @property
    def done(self) -> bool:
        """Whether the [DONE] sentinel has been seen."""
        return self._done

    def close(self) -> None:
        """Close the underlying decoder; safe to call more than once."""
        if self._decoder is not None:
            self._decoder.close()

    def _decode(self, event: Event) -> T:
        try:
            payload = orjson.loads(event.data)
        except orjson.JSONDecodeError as e:
            raise DecodeError(f"invalid JSON payload: {e}") from e

        message = probe_error(payload)
        if message is not None:
            raise UpstreamError(message)

        if event.type and event.type.startswith(self._wrap_prefix):
            payload = {"event": event.type, "data": payload}

        try:
            return self._adapter.validate_python(payload)
        except ValidationError as e:
            raise DecodeError(str(e)) from e

    def __iter__(self) -> Iterator[T]:
        while self.next():
            yield self._current
        if self._err is not None:
            raise self._err

    def __enter__(self) -> "Stream[T]":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
