"""SSE envelope driver.

Reads a backend SSE body, feeds each record to a dialect decoder and brackets
the decoder's events with the Claude message lifecycle events.
"""

from collections.abc import AsyncIterator
from typing import Any

from ccbridge.core.errors import DecodeSkipError
from ccbridge.core.logging import get_logger
from ccbridge.utils.identifiers import generate_message_id

from .cursor import BlockCursor
from .decoder import DeltaDecoder
from .events import message_delta, message_start, message_stop
from .sse import format_event, iter_sse_records


logger = get_logger(__name__)


class SSEEnvelopeDriver:
    """Drives one streamed response from backend bytes to Claude events.

    The driver holds no state beyond the decoder it was given; abandoning the
    iteration (client disconnect) discards the cursor and the accumulator with
    it.
    """

    def __init__(
        self,
        decoder: DeltaDecoder,
        message_id: str | None = None,
        model: str = "",
    ) -> None:
        self.decoder = decoder
        self.message_id = message_id or generate_message_id()
        self.model = model

    async def events(self, chunks: AsyncIterator[bytes]) -> AsyncIterator[dict[str, Any]]:
        """Yield Claude stream events as dictionaries."""
        cursor = BlockCursor()
        record_count = 0
        skipped_count = 0
        event_count = 0

        yield message_start(self.message_id, self.model)

        async for record in iter_sse_records(chunks):
            if record.is_done:
                logger.debug("sse_done_sentinel_received", record_count=record_count)
                break

            record_count += 1
            try:
                result = self.decoder.decode(record.data, cursor)
            except DecodeSkipError as e:
                skipped_count += 1
                logger.debug(
                    "sse_record_decode_skipped",
                    reason=str(e),
                    sse_event=record.event,
                    data_preview=record.data[:100],
                    record_number=record_count,
                )
                continue

            if result is None:
                continue

            cursor = result.cursor
            for event in result.events:
                event_count += 1
                yield event

        for slot, entry in self.decoder.accumulator.drain().items():
            logger.warning(
                "incomplete_tool_call_dropped",
                slot=slot,
                tool_id=entry.id,
                tool_name=entry.name,
                buffered_chars=len(entry.arguments),
            )

        yield message_delta(
            self.decoder.stop_reason(),
            output_tokens=self.decoder.output_tokens,
            input_tokens=self.decoder.input_tokens or None,
        )
        yield message_stop()

        logger.info(
            "stream_conversion_completed",
            message_id=self.message_id,
            record_count=record_count,
            skipped_count=skipped_count,
            event_count=event_count,
            block_count=cursor.next_index,
            stop_reason=self.decoder.stop_reason(),
        )

    async def stream(self, chunks: AsyncIterator[bytes]) -> AsyncIterator[str]:
        """Yield Claude stream events rendered as SSE text."""
        async for event in self.events(chunks):
            yield format_event(event)
