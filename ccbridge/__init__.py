"""Claude Messages gateway for OpenAI-compatible backends."""

from ccbridge.core._version import __version__


__all__ = ["__version__"]
