"""Markdown note ingest and CSV writing.

A note becomes a ``ParsedNote`` (question, answer_md, tags); file discovery
expands paths into ``.md`` files, which are read as UTF-8 one at a time by the
reconciler.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Tuple

from .extract_qa import extract_qa
from .frontmatter import parse_front_matter
from .tags import extract_inline_tags, merge_and_normalize_tags

MARKDOWN_SUFFIXES = (".md", ".markdown")


@dataclass(frozen=True)
class ParsedNote:
    question: str
    answer_md: str
    tags: Tuple[str, ...]


def parse_note(raw_text: str, filename: str) -> ParsedNote:
    """Parse a raw Markdown note into question, answer and tags.

    Inline hashtags are read from the answer, so a tag that only appears in
    the heading used as the question is not picked up.
    """
    fm = parse_front_matter(raw_text)
    question, answer_md = extract_qa(raw_text, filename, front_matter=fm)
    inline = extract_inline_tags(answer_md)
    tags = merge_and_normalize_tags(fm.data.get("tags"), inline)
    return ParsedNote(question=question, answer_md=answer_md, tags=tuple(tags))


def iter_markdown_files(paths: Iterable[str | Path]) -> Iterator[Path]:
    """Expand files and directories (recursively) into Markdown file paths."""
    for p in paths:
        p = Path(p)
        if p.is_dir():
            yield from sorted(f for f in p.rglob("*") if f.is_file() and f.suffix.lower() in MARKDOWN_SUFFIXES)
        elif p.exists():
            yield p
        else:
            raise FileNotFoundError(f"Note file not found: {p}")


def read_note(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_csv(path: str | Path, rows: Iterable[dict]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = list(rows)
    if not rows:
        # Write empty file with no rows
        with path.open("w", encoding="utf-8", newline="") as f:
            f.write("")
        return
    fieldnames = list(rows[0].keys())
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for r in rows:
            writer.writerow(r)
