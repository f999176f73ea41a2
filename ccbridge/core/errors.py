"""Core error types for the gateway."""

from typing import Any


class ProxyError(Exception):
    """Base exception for all gateway errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        """Initialize with a message and optional cause.

        Args:
            message: The error message
            cause: The underlying exception that caused this error
        """
        super().__init__(message)
        self.cause = cause
        if cause:
            self.__cause__ = cause


class TransformationError(ProxyError):
    """Error raised during data transformation."""

    def __init__(self, message: str, data: Any = None, cause: Exception | None = None):
        """Initialize with a message, optional data, and cause.

        Args:
            message: The error message
            data: The data that failed to transform
            cause: The underlying exception
        """
        super().__init__(message, cause)
        self.data = data


class MalformedRequestError(TransformationError):
    """Inbound client body is not JSON or does not have the required shape.

    Reported to the caller as an ``invalid_request_error``; never retried.
    """


class DecodeSkipError(TransformationError):
    """A single upstream stream record could not be decoded.

    Only the SSE envelope driver catches this; the record is skipped and the
    stream continues.
    """


class UnknownProviderError(ProxyError):
    """No adapter or provider configuration exists for a name."""

    def __init__(self, name: str, cause: Exception | None = None):
        super().__init__(f"Unknown provider: {name}", cause)
        self.name = name


class ProxyConnectionError(ProxyError):
    """Error raised when the backend cannot be reached."""

    def __init__(
        self, message: str, url: str | None = None, cause: Exception | None = None
    ):
        """Initialize with a message, URL, and cause.

        Args:
            message: The error message
            url: The URL that failed to connect
            cause: The underlying exception
        """
        super().__init__(message, cause)
        self.url = url


class ProxyTimeoutError(ProxyError):
    """Error raised when the backend call times out."""

    def __init__(
        self,
        message: str,
        timeout: float | None = None,
        cause: Exception | None = None,
    ):
        """Initialize with a message, timeout value, and cause.

        Args:
            message: The error message
            timeout: The timeout value in seconds
            cause: The underlying exception
        """
        super().__init__(message, cause)
        self.timeout = timeout
