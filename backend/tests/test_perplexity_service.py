"""Tests for the Perplexity concise-mode service."""

import httpx
import orjson
import pytest

from app.config import settings
from app.models.perplexity import ConciseChunk
from app.models.request import ChatMessage, MessageRole, PerplexityChatRequest
from app.services.perplexity import PerplexityService
from app.streaming.think import SegmentKind, SplitterState
from app.utils.exceptions import InvalidArgumentError


def make_request(**kwargs) -> PerplexityChatRequest:
    fields = {
        "model": "sonar-deep-research",
        "token": "pplx-test",
        "messages": [ChatMessage(role=MessageRole.USER, content=" What is the capital of China? ")],
    }
    fields.update(kwargs)
    return PerplexityChatRequest(**fields)


def chunk(object_type, choices=None, **extra):
    data = {
        "id": "pplx-1",
        "object": object_type,
        "created": 1700000000,
        "model": "sonar-deep-research",
    }
    if choices is not None:
        data["choices"] = choices
    data.update(extra)
    return data


SEARCH_RESULT = {
    "title": "Beijing",
    "url": "https://example.com/beijing",
    "date": "2024-05-01",
    "snippet": "Beijing is the capital",
    "source": "web",
}

REASONING = chunk(
    "chat.reasoning",
    [{
        "index": 0,
        "delta": {
            "reasoning_steps": [{
                "thought": "Search for the capital",
                "type": "web_search",
                "web_search": {"search_keywords": ["capital of China"], "search_results": [SEARCH_RESULT]},
            }]
        },
    }],
)

REASONING_DONE = chunk(
    "chat.reasoning.done",
    [{"index": 0, "message": {"reasoning_steps": [{"thought": "Found it", "type": "reasoning"}]}}],
    search_results=[SEARCH_RESULT],
    images=[{"url": "https://img.test/beijing.png"}],
)


def completion(content):
    return chunk("chat.completion.chunk", [{"index": 0, "delta": {"content": content}}])


COMPLETION_DONE = chunk(
    "chat.completion.done",
    [{
        "index": 0,
        "message": {"role": "assistant", "content": "<think>easy</think>Beijing."},
        "finish_reason": "stop",
    }],
    usage={"prompt_tokens": 12, "completion_tokens": 4, "total_tokens": 16, "search_context_size": "low"},
)


def process(data, state=None):
    return PerplexityService().process_chunk(
        ConciseChunk.model_validate(data), state or SplitterState()
    )


def test_reasoning_chunk():
    [(event, payload)] = process(REASONING)
    assert event == "reasoning"
    step = payload.reasoning_steps[0]
    assert step.thought == "Search for the capital"
    assert step.web_search.search_results[0].title == "Beijing"


def test_reasoning_chunk_without_steps():
    assert process(chunk("chat.reasoning", [{"index": 0, "delta": {}}])) == []


def test_reasoning_done_chunk():
    [(event, payload)] = process(REASONING_DONE)
    assert event == "reasoning_done"
    assert payload.reasoning_steps[0].thought == "Found it"
    assert payload.search_results[0].url == "https://example.com/beijing"
    assert payload.images[0].url == "https://img.test/beijing.png"


def test_completion_chunk_split_by_think_markers():
    state = SplitterState()
    first = process(completion("<think>hmm</think>Bei"), state)
    second = process(completion("jing<th"), state)

    assert [(e, p.kind, p.content) for e, p in first] == [
        ("completion", SegmentKind.REASONING, "hmm"),
        ("completion", SegmentKind.ANSWER, "Bei"),
    ]
    assert [(e, p.kind, p.content) for e, p in second] == [
        ("completion", SegmentKind.ANSWER, "jing"),
    ]
    assert state.pending == "<th"


def test_empty_completion_chunk():
    assert process(completion("")) == []


def test_completion_done_chunk():
    [(event, payload)] = process(COMPLETION_DONE)
    assert event == "completion_done"
    assert payload.content == "Beijing."
    assert payload.reasoning == "easy"
    assert payload.usage.total_tokens == 16


def test_unknown_chunk_type():
    assert process(chunk("chat.something.new")) == []


def test_stream_end_to_end(mock_client, sse_body, parse_sse):
    body = sse_body(REASONING, REASONING_DONE, completion("Beijing"), completion("."), COMPLETION_DONE)
    client = mock_client(lambda request: httpx.Response(200, content=body))

    frames = list(PerplexityService(client).stream_chat_completions(make_request()))
    events = parse_sse(frames)

    assert [e for e, _ in events] == [
        "reasoning",
        "reasoning_done",
        "completion",
        "completion",
        "completion_done",
        "done",
    ]
    assert events[2][1]["content"] == "Beijing"

    sent = client.requests[0]
    assert str(sent.url) == f"{settings.perplexity_base_url}/chat/completions"
    assert sent.headers["Authorization"] == "Bearer pplx-test"
    payload = orjson.loads(sent.content)
    assert payload["stream"] is True
    assert payload["stream_mode"] == "concise"
    assert payload["messages"] == [{"role": "user", "content": "What is the capital of China?"}]
    assert "temperature" not in payload


def test_stream_flushes_pending_text(mock_client, sse_body, parse_sse):
    client = mock_client(lambda request: httpx.Response(200, content=sse_body(completion("a <thin"))))

    events = parse_sse(list(PerplexityService(client).stream_chat_completions(make_request())))

    assert [(e, p.get("content")) for e, p in events] == [
        ("completion", "a "),
        ("completion", "<thin"),
        ("done", None),
    ]


def test_stream_strict_schema_error(mock_client, sse_body, parse_sse):
    drifted = completion("x")
    drifted["citations"] = ["https://example.com"]
    client = mock_client(lambda request: httpx.Response(200, content=sse_body(drifted)))

    events = parse_sse(list(PerplexityService(client).stream_chat_completions(make_request())))

    assert events[-1][0] == "error"


def test_stream_upstream_error(mock_client, sse_body, parse_sse):
    client = mock_client(
        lambda request: httpx.Response(200, content=sse_body(completion("A"), {"error": "quota exceeded"}))
    )

    events = parse_sse(list(PerplexityService(client).stream_chat_completions(make_request())))

    assert events[-1] == ("error", {"reason": "UPSTREAM_API_ERROR", "message": "quota exceeded"})


def test_prepare_requires_token(monkeypatch):
    monkeypatch.setattr(settings, "perplexity_api_key", None)
    with pytest.raises(InvalidArgumentError):
        PerplexityService().prepare(make_request(token="  "))


def test_prepare_falls_back_to_configured_token(monkeypatch):
    monkeypatch.setattr(settings, "perplexity_api_key", "pplx-configured")
    token, upstream = PerplexityService().prepare(make_request(token=None, temperature=0.5))
    assert token == "pplx-configured"
    assert upstream.temperature == 0.5


def test_prepare_rejects_unsupported_model():
    with pytest.raises(InvalidArgumentError):
        PerplexityService().prepare(make_request(model="gpt-4o"))


def test_completion_done_flushes_pending_text_first():
    state = SplitterState()
    process(completion("Beijing<th"), state)

    events = process(COMPLETION_DONE, state)

    assert [e for e, _ in events] == ["completion", "completion_done"]
    assert events[0][1].content == "<th"
    assert events[0][1].kind == SegmentKind.ANSWER
    assert state.pending == ""


def test_stream_sends_trailing_text_before_completion_done(mock_client, sse_body, parse_sse):
    body = sse_body(completion("done<th"), COMPLETION_DONE)
    client = mock_client(lambda request: httpx.Response(200, content=body))

    events = parse_sse(list(PerplexityService(client).stream_chat_completions(make_request())))

    assert [(e, p.get("content")) for e, p in events] == [
        ("completion", "done"),
        ("completion", "<th"),
        ("completion_done", "Beijing."),
        ("done", None),
    ]


def test_stream_rejects_coerced_types(mock_client, sse_body, parse_sse):
    drifted = completion("x")
    drifted["created"] = "1700000000"
    client = mock_client(lambda request: httpx.Response(200, content=sse_body(drifted)))

    events = parse_sse(list(PerplexityService(client).stream_chat_completions(make_request())))

    assert [e for e, _ in events] == ["error"]
    assert events[0][1]["reason"] == "UPSTREAM_API_ERROR"
