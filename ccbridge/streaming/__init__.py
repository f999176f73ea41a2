"""Streaming translation engine: SSE framing, block cursor, tool-call reassembly."""

from .accumulator import CompletedToolCall, SlotState, ToolCallAccumulator, ToolCallSlot
from .cursor import BlockCursor
from .decoder import DecodeResult, DeltaDecoder
from .driver import SSEEnvelopeDriver
from .sse import DONE_SENTINEL, SSERecord, format_event, iter_sse_records


__all__ = [
    "BlockCursor",
    "CompletedToolCall",
    "DONE_SENTINEL",
    "DecodeResult",
    "DeltaDecoder",
    "SSEEnvelopeDriver",
    "SSERecord",
    "SlotState",
    "ToolCallAccumulator",
    "ToolCallSlot",
    "format_event",
    "iter_sse_records",
]
