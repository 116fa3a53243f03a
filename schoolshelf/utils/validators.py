"""Deterministic validators and sanitizers used across services and schemas."""

from __future__ import annotations

import html
import re

MAX_FIELD_LENGTH = 1000

_TAG_RE = re.compile(r"<[^>]*>")
_ISBN_RE = re.compile(r"[^0-9Xx-]")
_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_DIGITS_RE = re.compile(r"^[0-9]+$")


def sanitize_text(value: str | None, max_len: int = MAX_FIELD_LENGTH) -> str:
    """Sanitize free-form content before persistence."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    return cleaned[:max_len]


def strip_tags(value: str | None, max_len: int = MAX_FIELD_LENGTH) -> str:
    """Drop HTML tags and stray angle brackets from short profile fields."""
    cleaned = _TAG_RE.sub("", sanitize_text(value, max_len=max_len))
    return cleaned.replace("<", "").replace(">", "").strip()


def escape_text(value: str | None, max_len: int = MAX_FIELD_LENGTH) -> str:
    """HTML-escape catalog text before it is stored and rendered."""
    cleaned = sanitize_text(value, max_len=max_len)
    return html.escape(cleaned, quote=True).replace("/", "&#x2F;")


def normalize_isbn(value: str | None) -> str | None:
    """Keep digits, dashes and X; empty results become None."""
    if not value:
        return None
    cleaned = _ISBN_RE.sub("", value)[:20]
    return cleaned or None


def is_valid_slug(value: str) -> bool:
    return bool(_SLUG_RE.match(value))


def is_student_number(value: str) -> bool:
    return bool(_DIGITS_RE.match(value))


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))
