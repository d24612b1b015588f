from app.streaming.sse import Event, FrameDecoder, new_decoder
from app.streaming.stream import Stream
from app.streaming.think import (
    Mode,
    Segment,
    SegmentKind,
    SplitterState,
    finalize,
    split_fragment,
    split_fragments,
)

__all__ = [
    "Event",
    "FrameDecoder",
    "Mode",
    "Segment",
    "SegmentKind",
    "SplitterState",
    "Stream",
    "finalize",
    "new_decoder",
    "split_fragment",
    "split_fragments",
]
