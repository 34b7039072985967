"""Text normalization utilities shared by parsing and matching.

Policy:
- Questions: collapse whitespace runs to a single space and trim.
- Wiki-link matching: lowercase, map '-' and '_' to space, collapse whitespace, trim.
"""

from __future__ import annotations

import re

_WS_RE = re.compile(r"\s+")
_LINK_SEP_RE = re.compile(r"[_-]")


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim (safe for None-like inputs)."""
    if not text:
        return ""
    return _WS_RE.sub(" ", str(text)).strip()


def is_blank(text: str | None) -> bool:
    return not text or not text.strip()


def normalize_for_match(text: str) -> str:
    """Normalize text for wiki-link matching.

    Steps: lowercase -> '-'/'_' to space -> collapse whitespace and trim.
    """
    if not text:
        return ""
    t = str(text).lower()
    t = _LINK_SEP_RE.sub(" ", t)
    return collapse_whitespace(t)
