"""
Perplexity concise-mode streaming.

Each upstream chunk kind maps to one outbound SSE event:
- chat.reasoning        -> reasoning       (ReasoningChunk)
- chat.reasoning.done   -> reasoning_done  (ReasoningDoneChunk)
- chat.completion.chunk -> completion      (CompletionChunk, one per think-split segment)
- chat.completion.done  -> completion_done (CompletionDoneChunk)
Streams end with a terminal "done" or "error" event.
"""

import logging
from typing import Iterator, List, Optional, Tuple

import httpx
from pydantic import BaseModel

from app.config import settings
from app.models.perplexity import ConciseChunk, PerplexityMessage, PerplexityRequest
from app.models.request import PerplexityChatRequest
from app.models.response import (
    CompletionChunk,
    CompletionDoneChunk,
    ReasoningChunk,
    ReasoningDoneChunk,
)
from app.providers.perplexity import PerplexityProvider, validate_model
from app.services.converter import (
    convert_image_results,
    convert_reasoning_steps,
    convert_search_results,
    convert_usage,
)
from app.services.messages import to_upstream_messages
from app.streaming.think import Segment, SplitterState, finalize, split_fragment, split_text
from app.utils.exceptions import (
    InvalidArgumentError,
    ProviderHTTPError,
    ServiceError,
    StreamError,
    UpstreamAPIError,
)
from app.utils.sse import format_error_sse, format_sse

logger = logging.getLogger(__name__)

OutboundEvent = Tuple[str, BaseModel]


class PerplexityService:
    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client

    def prepare(self, request: PerplexityChatRequest) -> Tuple[str, PerplexityRequest]:
        """Validate the request; returns the upstream token and request body."""
        token = (request.token or settings.perplexity_api_key or "").strip()
        if not token:
            raise InvalidArgumentError("token is empty")

        validate_model(request.model)
        messages = to_upstream_messages(request.messages, strip=True)
        logger.debug(f"Converted {len(messages)} messages")

        upstream = PerplexityRequest(
            model=request.model,
            messages=[PerplexityMessage(**m) for m in messages],
            temperature=request.temperature,
            top_p=request.top_p,
        )
        return token, upstream

    def process_chunk(self, chunk: ConciseChunk, state: SplitterState) -> List[OutboundEvent]:
        """Convert one upstream chunk into zero or more outbound events."""
        if chunk.object == "chat.reasoning":
            return self._handle_reasoning(chunk)
        elif chunk.object == "chat.reasoning.done":
            return self._handle_reasoning_done(chunk)
        elif chunk.object == "chat.completion.chunk":
            return self._handle_completion_chunk(chunk, state)
        elif chunk.object == "chat.completion.done":
            return self._handle_completion_done(chunk, state)

        logger.warning(f"Unknown chunk type: {chunk.object}")
        return []

    def _handle_reasoning(self, chunk: ConciseChunk) -> List[OutboundEvent]:
        if not chunk.choices or chunk.choices[0].delta is None:
            return []
        delta = chunk.choices[0].delta
        if not delta.reasoning_steps:
            return []
        return [(
            "reasoning",
            ReasoningChunk(
                id=chunk.id,
                model=chunk.model,
                created=chunk.created,
                reasoning_steps=convert_reasoning_steps(delta.reasoning_steps),
            ),
        )]

    def _handle_reasoning_done(self, chunk: ConciseChunk) -> List[OutboundEvent]:
        done = ReasoningDoneChunk(
            id=chunk.id,
            model=chunk.model,
            created=chunk.created,
            search_results=convert_search_results(chunk.search_results),
            images=convert_image_results(chunk.images),
        )
        # The full list of reasoning steps is on the message
        if chunk.choices and chunk.choices[0].message is not None:
            done.reasoning_steps = convert_reasoning_steps(chunk.choices[0].message.reasoning_steps)
        return [("reasoning_done", done)]

    def _handle_completion_chunk(
        self, chunk: ConciseChunk, state: SplitterState
    ) -> List[OutboundEvent]:
        if not chunk.choices or chunk.choices[0].delta is None:
            return []
        content = chunk.choices[0].delta.content
        if not content:
            return []
        return [
            ("completion", self._completion(chunk, segment))
            for segment in split_fragment(state, content)
        ]

    def _handle_completion_done(
        self, chunk: ConciseChunk, state: SplitterState
    ) -> List[OutboundEvent]:
        # Flush text held by the splitter ahead of the done event
        flushed: List[OutboundEvent] = [
            ("completion", self._completion(chunk, segment)) for segment in finalize(state)
        ]
        done = CompletionDoneChunk(
            id=chunk.id,
            model=chunk.model,
            created=chunk.created,
            search_results=convert_search_results(chunk.search_results),
            images=convert_image_results(chunk.images),
            usage=convert_usage(chunk.usage),
        )
        # Full content is on the message; reasoning markers are split out of it
        if chunk.choices and chunk.choices[0].message is not None:
            reasoning, answer = split_text(chunk.choices[0].message.content or "")
            done.content = answer
            done.reasoning = reasoning or None
        return flushed + [("completion_done", done)]

    @staticmethod
    def _completion(chunk: ConciseChunk, segment: Segment) -> CompletionChunk:
        return CompletionChunk(
            id=chunk.id,
            model=chunk.model,
            created=chunk.created,
            kind=segment.kind,
            content=segment.text,
        )

    def stream_chat_completions(
        self,
        request: PerplexityChatRequest,
        prepared: Optional[Tuple[str, PerplexityRequest]] = None,
    ) -> Iterator[str]:
        """Stream a concise-mode chat completion as SSE frames."""
        if prepared is None:
            prepared = self.prepare(request)
        token, upstream = prepared

        logger.info(
            f"Perplexity stream started: model={upstream.model}, "
            f"messages={len(upstream.messages)}, temperature={upstream.temperature}, "
            f"top_p={upstream.top_p}"
        )

        state = SplitterState()
        error: Optional[ServiceError] = None
        last_chunk: Optional[ConciseChunk] = None

        with PerplexityProvider(token, settings.perplexity_base_url, self._client) as provider:
            try:
                with provider.stream_chat_completions(upstream) as stream:
                    while stream.next():
                        chunk = stream.current()
                        last_chunk = chunk
                        logger.debug(f"Received chunk type={chunk.object} id={chunk.id}")
                        for event, data in self.process_chunk(chunk, state):
                            yield format_sse(event, data)
                    if stream.err() is not None:
                        raise stream.err()
            except ServiceError as e:
                error = e
            except (ProviderHTTPError, StreamError, httpx.HTTPError) as e:
                error = UpstreamAPIError(str(e))

        # Streams that end without chat.completion.done
        if last_chunk is not None:
            for segment in finalize(state):
                yield format_sse("completion", self._completion(last_chunk, segment))

        if error is not None:
            logger.error(f"Perplexity stream failed: {error.reason}: {error.message}")
            yield format_error_sse(error.reason, error.message)
            return

        logger.info(f"Perplexity stream finished: model={upstream.model}")
        yield format_sse("done")
