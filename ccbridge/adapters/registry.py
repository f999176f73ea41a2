"""Lookup of provider adapters by name."""

from typing import Any

from ccbridge.core.errors import UnknownProviderError

from .base import ProviderAdapter
from .openai import OpenAIChatAdapter, OpenAIResponsesAdapter
from .passthrough import PassthroughAdapter


ADAPTERS: dict[str, type[ProviderAdapter]] = {
    OpenAIChatAdapter.name: OpenAIChatAdapter,
    OpenAIResponsesAdapter.name: OpenAIResponsesAdapter,
    PassthroughAdapter.name: PassthroughAdapter,
}


def available_adapters() -> list[str]:
    return sorted(ADAPTERS)


def get_adapter(name: str, **options: Any) -> ProviderAdapter:
    """Create the adapter registered under ``name``.

    Args:
        name: Adapter name, e.g. ``openai``
        **options: Constructor options understood by that adapter

    Raises:
        UnknownProviderError: If no adapter has that name
    """
    try:
        adapter_cls = ADAPTERS[name]
    except KeyError as e:
        raise UnknownProviderError(name, cause=e) from e
    return adapter_cls(**options)
