"""Text helpers shared by the markdown parser, validator and analytics."""

from __future__ import annotations

import re

ELLIPSIS = "…"

# Severity/recommendation icons a generator may prefix to bullets or headings.
# Each may carry a trailing variation selector (U+FE0F).
_ICON_CHARS = "\U0001f6d1\U0001f6a8\U0001f534⚠\U0001f7e0\U0001f7e1✅ℹ\U0001f9fe"
ICON_PREFIX = rf"(?:[{_ICON_CHARS}]️?\s*)*"

_LEADING_ICONS = re.compile(rf"^(?:[{_ICON_CHARS}]️?\s*)+")
_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return _WHITESPACE.sub(" ", text or "").strip()


def strip_leading_icons(text: str) -> str:
    return _LEADING_ICONS.sub("", text or "").strip()


def truncate(text: str, limit: int) -> str:
    """Soft-truncate to at most ``limit`` characters, ellipsis included.

    Text already within the limit is returned untouched, so truncating a
    truncated value is a no-op.
    """
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + ELLIPSIS
