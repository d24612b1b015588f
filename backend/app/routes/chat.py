"""
Chat routes proxying to upstream providers.

Streaming endpoints validate the request before the response starts, so
invalid input gets a 400 instead of an error event. Failures after streaming
has begun arrive as a terminal "error" SSE event.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.models.request import ChatCompletionRequest, PerplexityChatRequest
from app.models.response import ChatCompletionResponse
from app.services.openai import OpenAIService
from app.services.perplexity import PerplexityService
from app.utils.exceptions import ServiceError, raise_service_error

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def get_openai_service() -> OpenAIService:
    return OpenAIService()


def get_perplexity_service() -> PerplexityService:
    return PerplexityService()


@router.post("/openai/chat", response_model=ChatCompletionResponse)
def openai_chat(
    request: ChatCompletionRequest,
    service: OpenAIService = Depends(get_openai_service),
):
    """POST /api/openai/chat - non-streaming chat completion"""
    try:
        return service.chat_completion(request)
    except ServiceError as e:
        raise_service_error(e)


@router.post("/openai/chat/stream")
def openai_chat_stream(
    request: ChatCompletionRequest,
    service: OpenAIService = Depends(get_openai_service),
):
    """
    POST /api/openai/chat/stream

    Returns SSE stream with events:
    - reasoning: Text inside <think> markers (or delta.reasoning_content) {kind, content}
    - answer: Answer text {kind, content}
    - error: Upstream failure {reason, message}
    - done: Stream finished {}
    """
    try:
        payload = service.prepare(request)
    except ServiceError as e:
        raise_service_error(e)

    return StreamingResponse(
        service.stream_chat_completion(request, payload),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/perplexity/chat/stream")
def perplexity_chat_stream(
    request: PerplexityChatRequest,
    service: PerplexityService = Depends(get_perplexity_service),
):
    """
    POST /api/perplexity/chat/stream - concise-mode streaming

    Returns SSE stream with events:
    - reasoning: Reasoning steps {id, model, created, reasoning_steps}
    - reasoning_done: Full reasoning with sources {..., search_results, images}
    - completion: Content delta {id, model, created, kind, content}
    - completion_done: Full answer {..., content, reasoning, usage}
    - error: Upstream failure {reason, message}
    - done: Stream finished {}
    """
    try:
        prepared = service.prepare(request)
    except ServiceError as e:
        raise_service_error(e)

    return StreamingResponse(
        service.stream_chat_completions(request, prepared),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
