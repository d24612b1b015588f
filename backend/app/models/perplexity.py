"""Perplexity chat-completions request and concise-mode streaming payloads."""

from typing import List, Literal, Optional

from app.models.base import StrictModel

SUPPORTED_MODELS = ("sonar", "sonar-deep-research")


class PerplexityMessage(StrictModel):
    role: str
    content: str


class PerplexityRequest(StrictModel):
    model: str
    messages: List[PerplexityMessage]
    stream: bool = True
    stream_mode: Literal["concise", "full"] = "concise"
    temperature: Optional[float] = None
    top_p: Optional[float] = None


class SearchResult(StrictModel):
    title: str
    url: str
    date: Optional[str] = None
    last_updated: Optional[str] = None
    snippet: str = ""
    source: str = ""


class ImageResult(StrictModel):
    url: str
    title: Optional[str] = None
    source: Optional[str] = None


class WebSearch(StrictModel):
    search_keywords: Optional[List[str]] = None
    search_results: Optional[List[SearchResult]] = None


class ReasoningStep(StrictModel):
    thought: str
    type: str
    web_search: Optional[WebSearch] = None


class ConciseDelta(StrictModel):
    """Used by chat.reasoning and chat.completion.chunk."""

    content: Optional[str] = None
    reasoning_steps: Optional[List[ReasoningStep]] = None


class ConciseMessage(StrictModel):
    """Used by chat.reasoning.done and chat.completion.done."""

    role: Optional[str] = None
    content: Optional[str] = None
    reasoning_steps: Optional[List[ReasoningStep]] = None


class ConciseChoice(StrictModel):
    index: int = 0
    delta: Optional[ConciseDelta] = None
    message: Optional[ConciseMessage] = None
    finish_reason: Optional[str] = None


class Cost(StrictModel):
    input_tokens_cost: Optional[float] = None
    output_tokens_cost: Optional[float] = None
    request_cost: Optional[float] = None
    total_cost: Optional[float] = None


class Usage(StrictModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    # "low", "medium" or "high"
    search_context_size: Optional[str] = None
    cost: Optional[Cost] = None


class ConciseChunk(StrictModel):
    id: str
    object: str  # chunk kind, e.g. "chat.completion.chunk"
    created: int
    model: str
    choices: Optional[List[ConciseChoice]] = None
    search_results: Optional[List[SearchResult]] = None
    images: Optional[List[ImageResult]] = None
    usage: Optional[Usage] = None
