"""JSON-Schema sanitization for tool parameter declarations."""

from typing import Any


# Keywords that describe the schema document rather than the data
UNSUPPORTED_KEYWORDS = frozenset({"$schema", "$id", "$comment"})


def clean_json_schema(schema: Any) -> dict[str, Any]:
    """Return a copy of ``schema`` without keywords backends reject.

    Property names under ``properties`` are data, not keywords, and are kept
    even when they collide with a removed keyword.
    """
    cleaned = _clean(schema)
    return cleaned if isinstance(cleaned, dict) else {}


def _clean(value: Any) -> Any:
    if isinstance(value, list):
        return [_clean(item) for item in value]
    if not isinstance(value, dict):
        return value

    out: dict[str, Any] = {}
    for key, item in value.items():
        if key in UNSUPPORTED_KEYWORDS:
            continue
        if key == "properties" and isinstance(item, dict):
            out[key] = {name: _clean(prop) for name, prop in item.items()}
        else:
            out[key] = _clean(item)
    return out
