"""Core abstractions for the ccbridge gateway."""

from ccbridge.core._version import __version__
from ccbridge.core.errors import (
    DecodeSkipError,
    MalformedRequestError,
    ProxyConnectionError,
    ProxyError,
    ProxyTimeoutError,
    TransformationError,
    UnknownProviderError,
)


__all__ = [
    "__version__",
    "DecodeSkipError",
    "MalformedRequestError",
    "ProxyConnectionError",
    "ProxyError",
    "ProxyTimeoutError",
    "TransformationError",
    "UnknownProviderError",
]
