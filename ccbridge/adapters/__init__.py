"""Provider adapters translating between Claude Messages and backend dialects."""

from .base import ProviderAdapter, TranslatingAdapter
from .openai import OpenAIChatAdapter, OpenAIResponsesAdapter
from .passthrough import PassthroughAdapter
from .registry import available_adapters, get_adapter


__all__ = [
    "OpenAIChatAdapter",
    "OpenAIResponsesAdapter",
    "PassthroughAdapter",
    "ProviderAdapter",
    "TranslatingAdapter",
    "available_adapters",
    "get_adapter",
]
