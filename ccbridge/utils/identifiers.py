"""Identifiers for synthesized Claude objects."""

import uuid


def generate_message_id() -> str:
    """Return a new Claude-style message id (``msg_…``)."""
    return f"msg_{uuid.uuid4().hex[:24]}"


def generate_tool_use_id() -> str:
    """Return a new Claude-style tool-use id (``toolu_…``)."""
    return f"toolu_{uuid.uuid4().hex[:24]}"
