"""Upstream OpenAI chat-completions payloads (streaming and non-streaming)."""

from typing import Any, List, Optional

from pydantic import Field

from app.models.base import StrictModel


class Usage(StrictModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    prompt_tokens_details: Optional[dict[str, Any]] = None
    completion_tokens_details: Optional[dict[str, Any]] = None


class ChunkDelta(StrictModel):
    role: Optional[str] = None
    content: Optional[str] = None
    # DeepSeek-style providers stream reasoning in a separate field
    reasoning_content: Optional[str] = None
    refusal: Optional[str] = None
    tool_calls: Optional[List[dict[str, Any]]] = None
    function_call: Optional[dict[str, Any]] = None


class ChunkChoice(StrictModel):
    index: int = 0
    delta: ChunkDelta = Field(default_factory=ChunkDelta)
    logprobs: Optional[dict[str, Any]] = None
    finish_reason: Optional[str] = None


class ChatCompletionChunk(StrictModel):
    id: str = ""
    object: str = "chat.completion.chunk"
    created: int = 0
    model: str = ""
    choices: List[ChunkChoice] = []
    system_fingerprint: Optional[str] = None
    service_tier: Optional[str] = None
    usage: Optional[Usage] = None


class CompletionMessage(StrictModel):
    role: str = "assistant"
    content: Optional[str] = None
    reasoning_content: Optional[str] = None
    refusal: Optional[str] = None
    tool_calls: Optional[List[dict[str, Any]]] = None
    function_call: Optional[dict[str, Any]] = None
    annotations: Optional[List[dict[str, Any]]] = None


class CompletionChoice(StrictModel):
    index: int = 0
    message: CompletionMessage
    logprobs: Optional[dict[str, Any]] = None
    finish_reason: Optional[str] = None


class ChatCompletion(StrictModel):
    id: str = ""
    object: str = "chat.completion"
    created: int = 0
    model: str = ""
    choices: List[CompletionChoice] = []
    system_fingerprint: Optional[str] = None
    service_tier: Optional[str] = None
    usage: Optional[Usage] = None
