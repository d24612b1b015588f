"""Shared fixtures: SSE body builders and httpx mock transports."""

from typing import Callable, List

import httpx
import orjson
import pytest

from app.streaming.sse import FrameDecoder


class TrackingByteStream(httpx.SyncByteStream):
    """Response body that records whether it was closed."""

    def __init__(self, chunks: List[bytes]):
        self.chunks = chunks
        self.closed = False

    def __iter__(self):
        yield from self.chunks

    def close(self):
        self.closed = True


@pytest.fixture
def sse_body() -> Callable[..., bytes]:
    """Build an SSE body from JSON payloads, terminated by [DONE]."""

    def build(*payloads, done: bool = True) -> bytes:
        body = b"".join(b"data: " + orjson.dumps(p) + b"\n\n" for p in payloads)
        if done:
            body += b"data: [DONE]\n\n"
        return body

    return build


@pytest.fixture
def parse_sse() -> Callable[[List[str]], List[tuple]]:
    """Parse outbound SSE frames back into (event, payload) pairs."""

    def parse(frames: List[str]) -> List[tuple]:
        decoder = FrameDecoder([frame.encode() for frame in frames])
        return [(event.type, orjson.loads(event.data)) for event in decoder]

    return parse


@pytest.fixture
def mock_client():
    """
    Build an httpx.Client whose requests are answered by ``handler``.

    Every request is recorded on ``client.requests``.
    """
    clients = []

    def build(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        client = httpx.Client(transport=httpx.MockTransport(record))
        client.requests = requests
        clients.append(client)
        return client

    yield build

    for client in clients:
        client.close()


@pytest.fixture
def tracking_stream() -> Callable[[List[bytes]], TrackingByteStream]:
    return TrackingByteStream
