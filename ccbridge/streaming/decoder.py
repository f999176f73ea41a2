"""Per-response decoding of backend stream payloads into Claude events."""

import json
from abc import ABC, abstractmethod
from typing import Any, ClassVar, NamedTuple

from pydantic import ValidationError

from ccbridge.core.errors import DecodeSkipError
from ccbridge.core.logging import get_logger
from ccbridge.models.claude import StopReason
from ccbridge.utils.identifiers import generate_tool_use_id

from .accumulator import ToolCallAccumulator
from .cursor import BlockCursor
from .events import message_delta, text_block, tool_use_block


logger = get_logger(__name__)


class DecodeResult(NamedTuple):
    """Client events produced by one payload and the cursor after them."""

    events: list[dict[str, Any]]
    cursor: BlockCursor


class DeltaDecoder(ABC):
    """Turns one backend stream payload at a time into Claude stream events.

    A decoder instance belongs to exactly one streamed response and owns all of
    its mutable state: the tool-call accumulator, usage counters and the
    backend's terminal signal. Dialects differ only in how they read payloads
    and in two class-level policies:

    - ``require_tool_id``: a tool call is held back until its id is known.
    - ``announce_tool_use_early``: a ``message_delta`` with ``stop_reason:
      tool_use`` follows each completed tool call instead of waiting for the
      end of the stream.
    """

    require_tool_id: ClassVar[bool] = False
    announce_tool_use_early: ClassVar[bool] = False

    def __init__(self) -> None:
        self.accumulator = ToolCallAccumulator(require_id=self.require_tool_id)
        self.response_id: str | None = None
        self.model: str | None = None
        self.input_tokens = 0
        self.output_tokens = 0
        self.truncated = False
        self.tool_calls_emitted = 0

    def decode(self, payload: str, cursor: BlockCursor) -> DecodeResult | None:
        """Decode one record's payload.

        Returns None when the payload has no client-visible effect.

        Raises:
            DecodeSkipError: If the payload is not a JSON object of the
                expected shape
        """
        try:
            data = json.loads(payload)
        except ValueError as e:
            raise DecodeSkipError("Stream record is not valid JSON", payload, e) from e
        if not isinstance(data, dict):
            raise DecodeSkipError("Stream record is not a JSON object", payload)

        try:
            events, cursor = self.decode_payload(data, cursor)
        except ValidationError as e:
            raise DecodeSkipError("Stream record has an unexpected shape", data, e) from e

        if not events:
            return None
        return DecodeResult(events, cursor)

    @abstractmethod
    def decode_payload(
        self, data: dict[str, Any], cursor: BlockCursor
    ) -> tuple[list[dict[str, Any]], BlockCursor]:
        """Decode one parsed payload into events and the advanced cursor."""

    def emit_text(
        self, text: str, cursor: BlockCursor
    ) -> tuple[list[dict[str, Any]], BlockCursor]:
        # Every upstream fragment is its own block
        if not text:
            return [], cursor
        return text_block(text, cursor.next_index), cursor.advance_text()

    def merge_tool_fragment(
        self,
        slot: int,
        cursor: BlockCursor,
        id: str | None = None,
        name: str | None = None,
        arguments: str | None = None,
    ) -> tuple[list[dict[str, Any]], BlockCursor]:
        """Merge a tool-call fragment and emit the tool_use block once complete."""
        completed = self.accumulator.add_fragment(
            slot, id=id, name=name, arguments=arguments
        )
        if completed is None:
            return [], cursor

        tool_id = completed.id or generate_tool_use_id()
        index = cursor.next_index
        events = tool_use_block(tool_id, completed.name, completed.input, index)
        self.tool_calls_emitted += 1
        if self.announce_tool_use_early:
            events.append(message_delta("tool_use", output_tokens=self.output_tokens))

        logger.debug(
            "tool_call_completed",
            slot=slot,
            block_index=index,
            tool_id=tool_id,
            tool_name=completed.name,
        )
        return events, cursor.advance_tool_use()

    def stop_reason(self) -> StopReason:
        if self.tool_calls_emitted:
            return "tool_use"
        if self.truncated:
            return "max_tokens"
        return "end_turn"
