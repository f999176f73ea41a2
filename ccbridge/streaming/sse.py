"""Server-Sent Events framing.

Reading splits an upstream byte stream into records at blank lines; writing
renders Claude stream events in the ``event:``/``data:`` form clients expect.
"""

import codecs
import json
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any


DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class SSERecord:
    """One SSE record: optional event name plus the joined ``data:`` payload."""

    data: str
    event: str | None = None

    @property
    def is_done(self) -> bool:
        return self.data.strip() == DONE_SENTINEL


def parse_record(raw: str) -> SSERecord | None:
    """Parse the lines of one record; records without data yield None.

    Example SSE format:
        event: response.output_text.delta
        data: {"type": "response.output_text.delta", "delta": "Hi"}
    """
    event: str | None = None
    data_lines: list[str] = []

    for line in raw.split("\n"):
        if not line or line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            data_lines.append(value)
        elif field == "event":
            event = value.strip() or None

    if not data_lines:
        return None
    return SSERecord(data="\n".join(data_lines), event=event)


async def iter_sse_records(chunks: AsyncIterator[bytes]) -> AsyncIterator[SSERecord]:
    """Yield SSE records as soon as each one is complete.

    Chunk boundaries are arbitrary: a record, a line or a multi-byte UTF-8
    character may be split across chunks.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""

    async for chunk in chunks:
        buffer += decoder.decode(chunk)
        buffer = buffer.replace("\r\n", "\n")
        while "\n\n" in buffer:
            raw, buffer = buffer.split("\n\n", 1)
            record = parse_record(raw)
            if record is not None:
                yield record

    buffer += decoder.decode(b"", final=True)
    buffer = buffer.replace("\r\n", "\n")
    if buffer.strip():
        record = parse_record(buffer)
        if record is not None:
            yield record


def format_event(event: dict[str, Any]) -> str:
    """Format a Claude stream event for Server-Sent Events."""
    json_data = json.dumps(event, separators=(",", ":"), ensure_ascii=False)
    event_type = event.get("type", "unknown")
    return f"event: {event_type}\ndata: {json_data}\n\n"
