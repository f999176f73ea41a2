"""Builders for Claude Messages stream events."""

import json
from typing import Any


def message_start(
    message_id: str, model: str, input_tokens: int = 0
) -> dict[str, Any]:
    """Format message start event."""
    return {
        "type": "message_start",
        "message": {
            "id": message_id,
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": model,
            "stop_reason": None,
            "stop_sequence": None,
            "usage": {"input_tokens": input_tokens, "output_tokens": 0},
        },
    }


def content_block_stop(index: int) -> dict[str, Any]:
    return {"type": "content_block_stop", "index": index}


def text_block(text: str, index: int) -> list[dict[str, Any]]:
    """Open, fill and close one text block."""
    return [
        {
            "type": "content_block_start",
            "index": index,
            "content_block": {"type": "text", "text": ""},
        },
        {
            "type": "content_block_delta",
            "index": index,
            "delta": {"type": "text_delta", "text": text},
        },
        content_block_stop(index),
    ]


def tool_use_block(
    tool_id: str, name: str, tool_input: Any, index: int
) -> list[dict[str, Any]]:
    """Open, fill and close one tool_use block carrying the complete input."""
    return [
        {
            "type": "content_block_start",
            "index": index,
            "content_block": {
                "type": "tool_use",
                "id": tool_id,
                "name": name,
                "input": {},
            },
        },
        {
            "type": "content_block_delta",
            "index": index,
            "delta": {
                "type": "input_json_delta",
                "partial_json": json.dumps(tool_input, ensure_ascii=False),
            },
        },
        content_block_stop(index),
    ]


def message_delta(
    stop_reason: str | None, output_tokens: int = 0, input_tokens: int | None = None
) -> dict[str, Any]:
    """Format message delta event."""
    usage: dict[str, int] = {"output_tokens": output_tokens}
    if input_tokens is not None:
        usage["input_tokens"] = input_tokens
    return {
        "type": "message_delta",
        "delta": {"stop_reason": stop_reason, "stop_sequence": None},
        "usage": usage,
    }


def message_stop() -> dict[str, Any]:
    return {"type": "message_stop"}
