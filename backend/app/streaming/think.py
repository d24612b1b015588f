"""
Incremental splitter for ``<think>...</think>`` reasoning markers.

Streamed model output may interleave reasoning and answer text in a single
content field. Markers can arrive split across any number of fragments, so the
splitter carries a ``SplitterState`` between calls:

    state = SplitterState()
    for delta in deltas:
        for segment in split_fragment(state, delta):
            ...
    for segment in finalize(state):
        ...

Markers never appear in the output. They do not nest: an opening marker
seen while inside a reasoning block is plain reasoning text.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

OPEN_TAG = "<think>"
CLOSE_TAG = "</think>"


class Mode(str, Enum):
    OUTSIDE = "outside"
    INSIDE = "inside"


class SegmentKind(str, Enum):
    REASONING = "reasoning"
    ANSWER = "answer"


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    text: str


@dataclass
class SplitterState:
    """
    Mode plus any unclassified suffix of the input seen so far.

    ``pending`` is always a strict prefix of the marker relevant to ``mode``
    (``<think>`` while outside, ``</think>`` while inside).
    """

    mode: Mode = Mode.OUTSIDE
    pending: str = ""


def _marker(mode: Mode) -> str:
    return CLOSE_TAG if mode is Mode.INSIDE else OPEN_TAG


def _kind(mode: Mode) -> SegmentKind:
    return SegmentKind.REASONING if mode is Mode.INSIDE else SegmentKind.ANSWER


def split_fragment(state: SplitterState, fragment: str) -> List[Segment]:
    """
    Classify one fragment of streamed text.

    Returns the segments completed by this fragment in the order the text
    occurred. A trailing partial marker is held in ``state.pending``.
    """
    text = state.pending + fragment
    state.pending = ""

    segments: List[Segment] = []
    run: List[str] = []

    def flush() -> None:
        if run:
            segments.append(Segment(_kind(state.mode), "".join(run)))
            run.clear()

    i = 0
    n = len(text)
    while i < n:
        marker = _marker(state.mode)

        if text.startswith(marker, i):
            flush()
            state.mode = Mode.OUTSIDE if state.mode is Mode.INSIDE else Mode.INSIDE
            i += len(marker)
            continue

        rest = text[i:]
        if len(rest) < len(marker) and marker.startswith(rest):
            state.pending = rest
            break

        # Both markers start with "<", so nothing before the next "<" can
        # begin one.
        nxt = text.find("<", i + 1)
        if nxt == -1:
            nxt = n
        run.append(text[i:nxt])
        i = nxt

    flush()
    return segments


def finalize(state: SplitterState) -> List[Segment]:
    """
    Flush a pending partial marker at end of stream.

    The held text never completed a marker, so it is emitted verbatim under
    the current mode.
    """
    if not state.pending:
        return []
    segment = Segment(_kind(state.mode), state.pending)
    state.pending = ""
    return [segment]


def split_fragments(
    fragments: Iterable[str], state: Optional[SplitterState] = None
) -> Iterator[Segment]:
    """Split every fragment, then finalize."""
    if state is None:
        state = SplitterState()
    for fragment in fragments:
        yield from split_fragment(state, fragment)
    yield from finalize(state)


def coalesce(segments: Iterable[Segment]) -> List[Segment]:
    """Merge adjacent segments of the same kind."""
    merged: List[Segment] = []
    for segment in segments:
        if merged and merged[-1].kind is segment.kind:
            merged[-1] = Segment(segment.kind, merged[-1].text + segment.text)
        else:
            merged.append(segment)
    return merged


def split_text(text: str) -> Tuple[str, str]:
    """Split a complete text into ``(reasoning, answer)``."""
    reasoning: List[str] = []
    answer: List[str] = []
    for segment in split_fragments([text]):
        if segment.kind is SegmentKind.REASONING:
            reasoning.append(segment.text)
        else:
            answer.append(segment.text)
    return "".join(reasoning), "".join(answer)
