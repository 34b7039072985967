"""Question/answer extraction from Markdown notes.

The question is derived by an ordered chain of tiers; the first tier that
produces a result wins:

1. front matter ``title``
2. first level-1 heading
3. first non-empty line
4. file name, without extension and Zettelkasten UID prefix

Each tier is a plain function returning ``None`` when it does not apply, so
the order lives in ``QA_TIERS`` and each tier can be tested on its own.
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple

from .frontmatter import FrontMatter, parse_front_matter
from .normalize import collapse_whitespace, is_blank

NO_CONTENT_PLACEHOLDER = "_(No content)_"
UNTITLED_QUESTION = "Untitled"

_H1_RE = re.compile(r"^[ \t]*#[ \t]+(.+?)[ \t]*$", re.MULTILINE)
_EXT_RE = re.compile(r"\.[^/.]+$")
_ZK_UID_RE = re.compile(r"^\d{8,14}[-_ ]*")

QA = Tuple[str, str]
Tier = Callable[[FrontMatter, str], Optional[QA]]


def strip_extension(name: str) -> str:
    """Remove the final ``.ext`` from a file name."""
    return _EXT_RE.sub("", name or "")


def strip_zk_prefix(name: str) -> str:
    """Remove a leading Zettelkasten UID (8-14 digits plus separators)."""
    return _ZK_UID_RE.sub("", name or "").strip()


def from_title(fm: FrontMatter, filename: str) -> Optional[QA]:
    title = fm.data.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip(), fm.content
    return None


def from_heading(fm: FrontMatter, filename: str) -> Optional[QA]:
    match = _H1_RE.search(fm.content)
    if not match:
        return None
    # Only the matched heading line is removed; later identical headings stay.
    body = fm.content[: match.start()] + fm.content[match.end():]
    return match.group(1).strip(), body.strip()


def from_first_line(fm: FrontMatter, filename: str) -> Optional[QA]:
    lines = fm.content.split("\n")
    for idx, line in enumerate(lines):
        if line.strip():
            rest = lines[:idx] + lines[idx + 1:]
            return line.strip(), "\n".join(rest).strip()
    return None


def from_filename(fm: FrontMatter, filename: str) -> Optional[QA]:
    return strip_zk_prefix(strip_extension(filename)), fm.content


QA_TIERS: List[Tier] = [from_title, from_heading, from_first_line, from_filename]


def extract_qa(raw: str, filename: str, front_matter: FrontMatter | None = None) -> QA:
    """Extract ``(question, answer_md)`` from a raw note.

    The question is whitespace-collapsed and never empty; a blank answer is
    replaced with ``NO_CONTENT_PLACEHOLDER``.
    """
    fm = front_matter if front_matter is not None else parse_front_matter(raw)
    question, answer = "", fm.content
    for tier in QA_TIERS:
        result = tier(fm, filename)
        if result is not None:
            question, answer = result
            break

    question = collapse_whitespace(question) or UNTITLED_QUESTION
    if is_blank(answer):
        answer = NO_CONTENT_PLACEHOLDER
    return question, answer
