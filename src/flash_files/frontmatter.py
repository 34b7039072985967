"""Restricted front matter parser for Markdown notes.

Only the flat subset Obsidian-style notes actually use is supported:

    ---
    title: "How can we act without attachment?"
    tags: [gita, karma-yoga]
    aliases:
      - detachment
    ---

No nesting and no multiline scalars. Anything the parser does not understand
is kept as a raw string, and a missing or malformed block is treated as absent.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Union

# Opening '---' line, lazily captured block, closing '---' line, rest of the note.
_BLOCK_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)(.*)\Z", re.DOTALL)

Value = Union[str, List[str]]


@dataclass(frozen=True)
class FrontMatter:
    data: Dict[str, Value] = field(default_factory=dict)
    content: str = ""


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _parse_inline_array(value: str) -> List[str]:
    items = (_strip_quotes(item.strip()) for item in value[1:-1].split(","))
    return [item for item in items if item]


def _collect_dash_items(lines: List[str], start: int) -> tuple[List[str], int]:
    """Collect '- item' lines from ``start``; blank lines are skipped."""
    items: List[str] = []
    i = start
    while i < len(lines):
        nxt = lines[i].strip()
        if nxt.startswith("-"):
            items.append(_strip_quotes(nxt[1:].strip()))
        elif nxt:
            break
        i += 1
    return items, i


def parse_front_matter_data(block: str) -> Dict[str, Value]:
    """Parse the key/value lines between the front matter delimiters."""
    data: Dict[str, Value] = {}
    lines = block.splitlines()
    i = 0
    while i < len(lines):
        trimmed = lines[i].strip()
        i += 1
        if not trimmed or trimmed.startswith("#"):
            continue
        key, sep, raw_value = trimmed.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = _strip_quotes(raw_value.strip())

        if value.startswith("[") and value.endswith("]"):
            data[key] = _parse_inline_array(value)
        elif not value:
            items, next_i = _collect_dash_items(lines, i)
            if items:
                data[key] = items
                i = next_i
            else:
                data[key] = value
        else:
            data[key] = value
    return data


def parse_front_matter(raw: str) -> FrontMatter:
    """Split ``raw`` into front matter data and body content.

    Never raises for malformed input: without a well-formed leading block the
    data is empty and the content is the whole input.
    """
    if not raw:
        return FrontMatter(data={}, content=raw or "")
    match = _BLOCK_RE.match(raw)
    if not match:
        return FrontMatter(data={}, content=raw)
    block, content = match.groups()
    return FrontMatter(data=parse_front_matter_data(block), content=content)
