"""Header handling for requests forwarded to backends and responses relayed back."""

from collections.abc import Iterable, Mapping


# Connection-scoped headers, never forwarded in either direction
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "transfer-encoding",
        "upgrade",
        "te",
        "trailer",
        "proxy-authenticate",
        "proxy-authorization",
    }
)

# Headers that must not be forwarded to a backend
EXCLUDED_REQUEST_HEADERS = HOP_BY_HOP_HEADERS | {
    "host",
    # Proxy headers
    "x-forwarded-for",
    "x-forwarded-proto",
    "x-forwarded-host",
    "forwarded",
    # Encoding headers (let the HTTP client handle them)
    "accept-encoding",
    "content-encoding",
    # Authentication headers (replaced by the backend credential)
    "authorization",
    "x-api-key",
    # Recalculated after transformation
    "content-length",
    "content-type",
}

# Backend response headers that no longer describe the relayed body;
# httpx has already decoded it
EXCLUDED_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {
    "content-length",
    "content-encoding",
}


def _filter(
    headers: Mapping[str, str] | Iterable[tuple[str, str]], excludes: frozenset[str]
) -> dict[str, str]:
    items = headers.items() if isinstance(headers, Mapping) else headers
    return {k: v for k, v in items if k.lower() not in excludes}


def filter_request_headers(
    headers: Mapping[str, str] | Iterable[tuple[str, str]],
) -> dict[str, str]:
    """Filter out headers that should not be forwarded to backends.

    Args:
        headers: Original request headers

    Returns:
        Filtered headers dictionary
    """
    return _filter(headers, EXCLUDED_REQUEST_HEADERS)


def filter_response_headers(
    headers: Mapping[str, str] | Iterable[tuple[str, str]],
) -> dict[str, str]:
    """Keep the backend response headers a client should see.

    Rate-limit, retry and request-id headers survive; names are lower-cased.
    """
    return {
        k.lower(): v for k, v in _filter(headers, EXCLUDED_RESPONSE_HEADERS).items()
    }
