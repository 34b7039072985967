"""Backup export and validated restore.

Backup file format (schemaVersion 1)::

    {"schemaVersion": 1, "exportedAt": <epoch ms>, "cards": [<card>, ...]}

Each card: id, question, answerBody, tags, createdAt, updatedAt, and
optionally box (1-5) and due (both or neither).

Restore validates the whole file before touching the store. Validation
problems are reported as a bounded list (first 10 plus a "+N more" line).
Two restore modes exist and must be named explicitly:

- merge: upsert cards by id, keep everything else
- replace: delete every card in the library, then load the backup
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .models import Card, now_ms
from .store import Store

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
MAX_REPORTED_ERRORS = 10

RESTORE_MERGE = "merge"
RESTORE_REPLACE = "replace"


class BackupValidationError(ValueError):
    """Raised when a backup fails validation; ``errors`` holds the capped messages."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = errors
        super().__init__("Invalid backup:\n" + "\n".join(f"  - {e}" for e in errors))


class BackupCard(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    id: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    answerBody: str
    tags: List[str]
    createdAt: int
    updatedAt: int
    box: Optional[int] = Field(None, ge=1, le=5)
    due: Optional[int] = None

    @model_validator(mode="after")
    def _box_and_due_together(self) -> "BackupCard":
        if (self.box is None) != (self.due is None):
            raise ValueError("box and due must be set together")
        return self


class Backup(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    schemaVersion: Literal[1]
    exportedAt: int
    cards: List[BackupCard]


@dataclass(frozen=True)
class RestoreResult:
    mode: str
    added: int
    updated: int
    total: int


def cap_errors(errors: List[str], limit: int = MAX_REPORTED_ERRORS) -> List[str]:
    """Truncate an error list to ``limit`` entries plus a "+N more" summary."""
    if len(errors) <= limit:
        return list(errors)
    return errors[:limit] + [f"+{len(errors) - limit} more"]


def _format_loc(loc: tuple) -> str:
    out = ""
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else str(part)
    return out or "backup"


def export_backup(cards: Iterable[Card], now: Optional[int] = None) -> dict:
    return {
        "schemaVersion": SCHEMA_VERSION,
        "exportedAt": now_ms() if now is None else now,
        "cards": [c.to_dict() for c in cards],
    }


def write_backup(path: str | Path, cards: Iterable[Card], now: Optional[int] = None) -> dict:
    data = export_backup(cards, now=now)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    return data


def validate_backup(data: object) -> List[Card]:
    """Validate backup data and return its cards.

    Raises:
        BackupValidationError: With every problem found, capped at ten messages
    """
    try:
        backup = Backup.model_validate(data)
    except ValidationError as e:
        errors = [f"{_format_loc(err['loc'])}: {err['msg']}" for err in e.errors()]
        raise BackupValidationError(cap_errors(errors)) from e

    seen: set = set()
    errors: List[str] = []
    for idx, bc in enumerate(backup.cards):
        if bc.id in seen:
            errors.append(f"cards[{idx}].id: duplicate card id {bc.id!r}")
        seen.add(bc.id)
    if errors:
        raise BackupValidationError(cap_errors(errors))

    return [Card.from_dict(bc.model_dump()) for bc in backup.cards]


def read_backup(path: str | Path) -> List[Card]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Backup file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise BackupValidationError([f"Invalid JSON: {e}"])
    return validate_backup(data)


def restore_backup(store: Store, cards: List[Card], *, mode: str) -> RestoreResult:
    """Apply validated backup cards to ``store``.

    ``mode`` has no default: "replace" deletes the current library and must
    never happen implicitly.
    """
    if mode == RESTORE_REPLACE:
        store.replace_all(cards)
        logger.warning("Library replaced from backup: %d cards", len(cards))
        return RestoreResult(mode=mode, added=len(cards), updated=0, total=len(store.list_cards()))
    if mode != RESTORE_MERGE:
        raise ValueError(f"Unknown restore mode {mode!r}; expected 'merge' or 'replace'")

    added = updated = 0
    for card in cards:
        if store.get_card(card.id) is None:
            added += 1
        else:
            updated += 1
        store.put_card(card)
    logger.info("Merged backup: %d added, %d updated", added, updated)
    return RestoreResult(mode=mode, added=added, updated=updated, total=len(store.list_cards()))
