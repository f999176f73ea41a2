"""Utility helpers shared by adapters and the API layer."""

from .headers import (
    EXCLUDED_REQUEST_HEADERS,
    EXCLUDED_RESPONSE_HEADERS,
    filter_request_headers,
    filter_response_headers,
)
from .identifiers import generate_message_id, generate_tool_use_id
from .schema import clean_json_schema
from .urls import build_url


__all__ = [
    "EXCLUDED_REQUEST_HEADERS",
    "EXCLUDED_RESPONSE_HEADERS",
    "build_url",
    "clean_json_schema",
    "filter_request_headers",
    "filter_response_headers",
    "generate_message_id",
    "generate_tool_use_id",
]
