"""Reporting utilities: card CSV export and CLI summaries."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from .ingest import write_csv
from .models import Card
from .reconcile import ImportReport
from .scheduler import QueueStats
from .tags import format_tags


def cards_to_rows(cards: Iterable[Card]) -> List[dict]:
    rows = []
    for c in cards:
        rows.append({
            "id": c.id,
            "question": c.question,
            "answerBody": c.answer_body,
            "tags": format_tags(c.tags),
            "createdAt": c.created_at,
            "updatedAt": c.updated_at,
            "box": "" if c.box is None else c.box,
            "due": "" if c.due is None else c.due,
        })
    return rows


def write_cards_csv(path: str | Path, cards: Iterable[Card]) -> None:
    """Write cards to CSV with the export column order (tags space-separated)."""
    write_csv(path, cards_to_rows(cards))


def print_import_summary(report: ImportReport) -> None:
    print("Import Summary:")
    print(f"  Created:     {len(report.created)}")
    print(f"  Overwritten: {len(report.overwritten)}")
    print(f"  Duplicated:  {len(report.duplicated)}")
    print(f"  Skipped:     {len(report.skipped)}")
    print(f"  Errors:      {len(report.errors)}")
    for c in report.skipped:
        print(f"    duplicate: {c.file_name} -> card {c.existing_card_id}")
    for e in report.errors:
        print(f"    error: {e.file_name}: {e.message}")


def print_queue_summary(stats: QueueStats, queue_len: int) -> None:
    print("Review Queue:")
    print(f"  Due today:     {stats.due}")
    print(f"  New available: {stats.new}")
    print(f"  In queue:      {queue_len}")
