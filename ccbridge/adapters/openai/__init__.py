"""Adapters for OpenAI-style backends."""

from .chat import ChatDeltaDecoder, OpenAIChatAdapter
from .responses import OpenAIResponsesAdapter, ResponsesDeltaDecoder


__all__ = [
    "ChatDeltaDecoder",
    "OpenAIChatAdapter",
    "OpenAIResponsesAdapter",
    "ResponsesDeltaDecoder",
]
