"""Card/import-record stores.

The core only talks to the ``Store`` protocol. ``InMemoryStore`` keeps cards
in insertion order (collection order matters for wiki-link resolution and
new-card queues); ``JsonFileStore`` persists the same state to one JSON file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from .models import Card, ImportRecord, now_ms

logger = logging.getLogger(__name__)

LIBRARY_SCHEMA_VERSION = 1


class LibraryError(ValueError):
    """The library file exists but cannot be loaded."""


@runtime_checkable
class Store(Protocol):
    """Persistence collaborator. Must give read-your-writes consistency."""

    def get_card(self, card_id: str) -> Optional[Card]: ...

    def put_card(self, card: Card) -> None: ...

    def delete_card(self, card_id: str) -> None: ...

    def list_cards(self) -> List[Card]: ...

    def replace_all(self, cards: Iterable[Card]) -> None: ...

    def find_import_record_by_hash(self, content_hash: str) -> Optional[ImportRecord]: ...

    def put_import_record(self, record: ImportRecord) -> None: ...


@dataclass
class InMemoryStore:
    cards: Dict[str, Card] = field(default_factory=dict)
    import_records: Dict[str, ImportRecord] = field(default_factory=dict)

    def get_card(self, card_id: str) -> Optional[Card]:
        return self.cards.get(card_id)

    def put_card(self, card: Card) -> None:
        self.cards[card.id] = card

    def delete_card(self, card_id: str) -> None:
        self.cards.pop(card_id, None)

    def list_cards(self) -> List[Card]:
        return list(self.cards.values())

    def replace_all(self, cards: Iterable[Card]) -> None:
        """Drop every card and install ``cards``. Import records whose card is gone stay
        behind; the reconciler treats them as misses."""
        self.cards = {c.id: c for c in cards}

    def find_import_record_by_hash(self, content_hash: str) -> Optional[ImportRecord]:
        return self.import_records.get(content_hash)

    def put_import_record(self, record: ImportRecord) -> None:
        self.import_records[record.content_hash] = record


class JsonFileStore(InMemoryStore):
    """In-memory store loaded from and saved to a JSON library file.

    File layout::

        {"schemaVersion": 1, "savedAt": ..., "cards": [...], "importRecords": [...]}

    Writes are buffered until ``save()``.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise LibraryError(f"Invalid JSON in library file {self.path}: {e}")
        if not isinstance(data, dict):
            raise LibraryError(f"Library file {self.path} must contain a JSON object, got {type(data).__name__}")
        version = data.get("schemaVersion")
        if version != LIBRARY_SCHEMA_VERSION:
            raise LibraryError(f"Unsupported library schemaVersion {version!r} in {self.path}")
        try:
            self.cards = {c.id: c for c in (Card.from_dict(d) for d in data.get("cards", []))}
            self.import_records = {
                r.content_hash: r for r in (ImportRecord.from_dict(d) for d in data.get("importRecords", []))
            }
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise LibraryError(f"Invalid record in library file {self.path}: {e!r}") from e
        logger.debug("Loaded %d cards and %d import records from %s",
                     len(self.cards), len(self.import_records), self.path)

    def save(self) -> None:
        payload = {
            "schemaVersion": LIBRARY_SCHEMA_VERSION,
            "savedAt": now_ms(),
            "cards": [c.to_dict() for c in self.cards.values()],
            "importRecords": [r.to_dict() for r in self.import_records.values()],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)
        logger.debug("Saved %d cards to %s", len(self.cards), self.path)
