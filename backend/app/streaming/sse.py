"""
Server-Sent Events frame decoder.

Turns a raw byte stream (for example ``httpx.Response.iter_bytes()``) into
discrete ``Event`` records. The decoder is pull-based:

    decoder = new_decoder(response)
    with decoder:
        while decoder.next():
            event = decoder.event()
        if decoder.err() is not None:
            ...

A record is dispatched on every blank line; a trailing record that is not
terminated by a blank line is dropped.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterable, Iterator, Optional

import httpx

from app.config import settings
from app.utils.exceptions import FrameReadError

logger = logging.getLogger(__name__)

# Errors raised by a byte source that mean the read itself failed
READ_ERRORS = (httpx.HTTPError, httpx.StreamError, OSError)


@dataclass(frozen=True)
class Event:
    """One dispatched SSE record."""

    type: str = ""
    data: bytes = b""


class FrameDecoder:
    """Line-oriented decoder for the ``text/event-stream`` format."""

    def __init__(
        self,
        source: Iterable[bytes],
        close: Optional[Callable[[], None]] = None,
        max_line_size: Optional[int] = None,
    ):
        self._chunks = iter(source)
        self._close_source = close
        self._max_line_size = max_line_size or settings.sse_max_line_size
        self._buffer = bytearray()
        self._lines: Deque[bytes] = deque()
        self._eof = False
        self._event = Event()
        self._err: Optional[FrameReadError] = None
        self._closed = False

    def next(self) -> bool:
        """Advance to the next complete record. False on end of input or error."""
        if self._err is not None:
            return False

        event_type = ""
        data = bytearray()

        while True:
            try:
                line = self._read_line()
            except FrameReadError as e:
                logger.debug(f"SSE read failed: {e}")
                self._err = e
                return False

            if line is None:
                return False

            # Dispatch event on an empty line
            if not line:
                self._event = Event(type=event_type, data=bytes(data))
                return True

            # "event: bar" -> name="event", value=" bar"
            name, _, value = line.partition(b":")
            if value.startswith(b" "):
                value = value[1:]

            if name == b"":
                # ": something" is a comment
                continue
            elif name == b"event":
                event_type = value.decode("utf-8", errors="replace")
            elif name == b"data":
                data += value
                data += b"\n"

    def event(self) -> Event:
        """Most recently dispatched record (valid after next() returned True)."""
        return self._event

    def err(self) -> Optional[FrameReadError]:
        return self._err

    def close(self) -> None:
        """Release the underlying byte source. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        chunks_close = getattr(self._chunks, "close", None)
        if chunks_close is not None:
            chunks_close()
        if self._close_source is not None:
            self._close_source()

    def _read_line(self) -> Optional[bytes]:
        while not self._lines:
            if self._eof:
                return None
            if self._closed:
                raise FrameReadError("byte source is closed")
            try:
                chunk = next(self._chunks)
            except StopIteration:
                # A trailing line without a newline can never be a blank line,
                # so it cannot dispatch anything.
                self._eof = True
                self._buffer.clear()
                return None
            except READ_ERRORS as e:
                raise FrameReadError(str(e) or type(e).__name__) from e
            self._feed(chunk)
        return self._lines.popleft()

    def _feed(self, chunk: bytes) -> None:
        self._buffer += chunk
        if b"\n" not in chunk:
            self._check_line_size(len(self._buffer))
            return
        *complete, rest = self._buffer.split(b"\n")
        for line in complete:
            self._check_line_size(len(line))
            if line.endswith(b"\r"):
                line = line[:-1]
            self._lines.append(bytes(line))
        self._buffer = bytearray(rest)
        self._check_line_size(len(self._buffer))

    def _check_line_size(self, size: int) -> None:
        if size > self._max_line_size:
            raise FrameReadError(
                f"SSE line exceeds {self._max_line_size} bytes"
            )

    def __iter__(self) -> Iterator[Event]:
        while self.next():
            yield self._event
        if self._err is not None:
            raise self._err

    def __enter__(self) -> "FrameDecoder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def new_decoder(
    response: httpx.Response, max_line_size: Optional[int] = None
) -> FrameDecoder:
    """Build a decoder over a streaming httpx response; close() closes the response."""
    return FrameDecoder(
        response.iter_bytes(),
        close=response.close,
        max_line_size=max_line_size,
    )
