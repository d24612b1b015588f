"""
Chat completions against any OpenAI-compatible upstream.

Streamed deltas are passed through the think-tag splitter so that reasoning
wrapped in ``<think>...</think>`` reaches the caller as separate "reasoning"
events instead of leaking into the answer text.

SSE events produced by stream_chat_completion:
- reasoning: {kind, content}
- answer: {kind, content}
- error: {reason, message} (terminal)
- done: {} (terminal)
"""

import logging
from typing import Any, Iterator, Optional

import httpx

from app.config import settings
from app.models.openai import ChatCompletionChunk
from app.models.request import ChatCompletionRequest
from app.models.response import ChatCompletionResponse, ContentDelta
from app.providers.openai_compatible import OpenAICompatibleProvider
from app.services.messages import to_upstream_messages
from app.streaming.think import Segment, SegmentKind, SplitterState, finalize, split_fragment
from app.utils.exceptions import (
    NoChoiceError,
    ProviderHTTPError,
    ServiceError,
    StreamError,
    UpstreamAPIError,
)
from app.utils.sse import format_error_sse, format_sse

logger = logging.getLogger(__name__)


def segment_event(segment: Segment) -> str:
    """Format a splitter segment as a "reasoning" or "answer" SSE event."""
    return format_sse(
        segment.kind.value, ContentDelta(kind=segment.kind, content=segment.text)
    )


class OpenAIService:
    """Proxies chat completions to an OpenAI-compatible API."""

    def __init__(self, client: Optional[httpx.Client] = None):
        # Shared client for all upstream calls; None creates one per request
        self._client = client

    def _provider(self, request: ChatCompletionRequest) -> OpenAICompatibleProvider:
        return OpenAICompatibleProvider(
            api_key=request.token or settings.openai_api_key,
            base_url=request.url or settings.openai_base_url,
            client=self._client,
        )

    def prepare(self, request: ChatCompletionRequest) -> dict[str, Any]:
        """Validate the request and build the upstream payload."""
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": to_upstream_messages(request.messages),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.top_p is not None:
            payload["top_p"] = request.top_p
        return payload

    def chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        payload = self.prepare(request)

        try:
            with self._provider(request) as provider:
                completion = provider.create_chat_completion(payload)
        except (ProviderHTTPError, StreamError, httpx.HTTPError) as e:
            logger.error(f"Chat completion failed for model '{request.model}': {e}")
            raise UpstreamAPIError(f"chat completion failed: {e}") from e

        if not completion.choices:
            logger.error(f"No choices in response for model '{request.model}'")
            raise NoChoiceError("upstream returned no choices")

        content = completion.choices[0].message.content or ""
        return ChatCompletionResponse(content=content.strip())

    def stream_chat_completion(
        self,
        request: ChatCompletionRequest,
        payload: Optional[dict[str, Any]] = None,
    ) -> Iterator[str]:
        """
        Stream a chat completion as SSE frames.

        Pass a payload from prepare() to validate before the response starts;
        otherwise validation errors are raised on first iteration.
        """
        if payload is None:
            payload = self.prepare(request)

        logger.info(
            f"Streaming chat completion started: model={request.model}, "
            f"messages={len(payload['messages'])}"
        )

        state = SplitterState()
        error: Optional[ServiceError] = None
        chunk_count = 0

        with self._provider(request) as provider:
            try:
                with provider.stream_chat_completion(payload) as stream:
                    while stream.next():
                        chunk_count += 1
                        for event in self._chunk_events(stream.current(), state):
                            yield event
                    if stream.err() is not None:
                        raise stream.err()
            except ServiceError as e:
                error = e
            except (ProviderHTTPError, StreamError, httpx.HTTPError) as e:
                error = UpstreamAPIError(str(e))

        # A partial marker that never completed is ordinary text
        for segment in finalize(state):
            yield segment_event(segment)

        if error is not None:
            logger.error(f"Stream failed after {chunk_count} chunks: {error.reason}: {error.message}")
            yield format_error_sse(error.reason, error.message)
            return

        logger.info(f"Streaming chat completion finished: model={request.model}, chunks={chunk_count}")
        yield format_sse("done")

    def _chunk_events(self, chunk: ChatCompletionChunk, state: SplitterState) -> Iterator[str]:
        if not chunk.choices:
            # Usage-only chunks carry no choices
            if chunk.usage is not None:
                return
            raise NoChoiceError(f"chunk {chunk.id} has no choices")

        delta = chunk.choices[0].delta
        logger.debug(f"Received chunk id={chunk.id}")

        if delta.reasoning_content:
            yield segment_event(Segment(SegmentKind.REASONING, delta.reasoning_content))

        if delta.content:
            for segment in split_fragment(state, delta.content):
                yield segment_event(segment)
