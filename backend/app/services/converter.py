"""Conversion of Perplexity upstream payloads into outbound response models."""

from typing import List, Optional

from app.models import perplexity
from app.models.response import (
    ImageResult,
    ReasoningStep,
    SearchResult,
    Usage,
    WebSearch,
)


def convert_search_results(
    results: Optional[List[perplexity.SearchResult]],
) -> List[SearchResult]:
    if not results:
        return []
    return [
        SearchResult(
            title=sr.title,
            url=sr.url,
            snippet=sr.snippet,
            source=sr.source,
            date=sr.date or None,
            last_updated=sr.last_updated or None,
        )
        for sr in results
    ]


def convert_image_results(
    images: Optional[List[perplexity.ImageResult]],
) -> List[ImageResult]:
    if not images:
        return []
    return [
        ImageResult(url=img.url, title=img.title or None, source=img.source or None)
        for img in images
    ]


def convert_reasoning_steps(
    steps: Optional[List[perplexity.ReasoningStep]],
) -> List[ReasoningStep]:
    if not steps:
        return []
    converted = []
    for step in steps:
        web_search = None
        if step.web_search is not None:
            web_search = WebSearch(
                search_keywords=step.web_search.search_keywords or [],
                search_results=convert_search_results(step.web_search.search_results),
            )
        converted.append(
            ReasoningStep(thought=step.thought, type=step.type, web_search=web_search)
        )
    return converted


def _positive(value):
    return value if value else None


def convert_usage(usage: Optional[perplexity.Usage]) -> Optional[Usage]:
    """
    Convert token usage and cost.

    Zero values are dropped. search_context_size is a label ("low", "medium",
    "high") and is not carried over.
    """
    if usage is None:
        return None
    converted = Usage(
        prompt_tokens=_positive(usage.prompt_tokens),
        completion_tokens=_positive(usage.completion_tokens),
        total_tokens=_positive(usage.total_tokens),
    )
    if usage.cost is not None:
        converted.input_tokens_cost = _positive(usage.cost.input_tokens_cost)
        converted.output_tokens_cost = _positive(usage.cost.output_tokens_cost)
        converted.request_cost = _positive(usage.cost.request_cost)
    return converted
