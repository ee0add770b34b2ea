"""Module: sanitize."""

import html
import re

_TAG_RE = re.compile(r"<[^>]*>")
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)

MAX_TEXT_LENGTH = 1000


def sanitize_text(value: str | None, max_length: int = MAX_TEXT_LENGTH) -> str | None:
    """
    Strip markup from free text and escape what is left.

    Returns None for missing or blank input so optional columns stay NULL.
    """
    if value is None or not isinstance(value, str):
        return None
    cleaned = _TAG_RE.sub("", value)
    cleaned = _JS_PROTOCOL_RE.sub("", cleaned)
    cleaned = _EVENT_HANDLER_RE.sub("", cleaned)
    cleaned = cleaned.strip()
    if not cleaned:
        return None
    # Truncate the raw text so no escaped entity is split.
    return html.escape(cleaned[:max_length], quote=True)


def normalize_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned if cleaned else None
