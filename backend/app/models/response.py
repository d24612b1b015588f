from pydantic import BaseModel
from typing import List, Optional

from app.streaming.think import SegmentKind


class ChatCompletionResponse(BaseModel):
    content: str


class ContentDelta(BaseModel):
    """One classified run of streamed text ("reasoning" or "answer" event)"""

    kind: SegmentKind
    content: str


class SearchResult(BaseModel):
    title: str
    url: str
    snippet: str
    source: str
    date: Optional[str] = None
    last_updated: Optional[str] = None


class ImageResult(BaseModel):
    url: str
    title: Optional[str] = None
    source: Optional[str] = None


class WebSearch(BaseModel):
    search_keywords: List[str] = []
    search_results: List[SearchResult] = []


class ReasoningStep(BaseModel):
    thought: str
    type: str
    web_search: Optional[WebSearch] = None


class Usage(BaseModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    input_tokens_cost: Optional[float] = None
    output_tokens_cost: Optional[float] = None
    request_cost: Optional[float] = None


class ReasoningChunk(BaseModel):
    id: str
    model: str
    created: int
    reasoning_steps: List[ReasoningStep] = []


class ReasoningDoneChunk(BaseModel):
    id: str
    model: str
    created: int
    reasoning_steps: List[ReasoningStep] = []
    search_results: List[SearchResult] = []
    images: List[ImageResult] = []


class CompletionChunk(BaseModel):
    id: str
    model: str
    created: int
    kind: SegmentKind = SegmentKind.ANSWER
    content: str


class CompletionDoneChunk(BaseModel):
    id: str
    model: str
    created: int
    content: Optional[str] = None
    reasoning: Optional[str] = None  # Text found inside <think> markers
    search_results: List[SearchResult] = []
    images: List[ImageResult] = []
    usage: Optional[Usage] = None
