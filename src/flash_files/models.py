"""Card and import record value types.

Cards are immutable snapshots: every mutation (review, edit, tag operation)
returns a new ``Card`` via ``dataclasses.replace``; persistence belongs to the
store.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Tuple, TypedDict

MIN_BOX = 1
MAX_BOX = 5


class CardDict(TypedDict, total=False):
    """Serialized card (backup/export form)."""

    id: str
    question: str
    answerBody: str
    tags: list
    createdAt: int
    updatedAt: int
    box: int
    due: int


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def new_card_id() -> str:
    return uuid.uuid4().hex


def _clean_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    # tags.py imports Card at module level.
    from .tags import normalize_tags

    return tuple(normalize_tags(tags))


@dataclass(frozen=True)
class Card:
    """A flashcard.

    Attributes:
        id: Opaque unique identifier
        question: Question text (whitespace collapsed)
        answer_body: Answer as Markdown
        tags: Unique lowercase tags
        created_at: Creation time (epoch ms)
        updated_at: Last modification time (epoch ms)
        box: Leitner box 1-5, None until first review
        due: Next review time (epoch ms), set iff ``box`` is set
    """

    id: str
    question: str
    answer_body: str
    tags: Tuple[str, ...] = ()
    created_at: int = 0
    updated_at: int = 0
    box: Optional[int] = None
    due: Optional[int] = None

    def __post_init__(self) -> None:
        if self.box is not None and not (MIN_BOX <= self.box <= MAX_BOX):
            raise ValueError(f"box must be in [{MIN_BOX}, {MAX_BOX}], got {self.box}")
        if (self.box is None) != (self.due is None):
            raise ValueError("box and due must be set together")

    @classmethod
    def new(
        cls,
        question: str,
        answer_body: str,
        tags: Iterable[str] = (),
        now: Optional[int] = None,
        card_id: Optional[str] = None,
    ) -> "Card":
        ts = now_ms() if now is None else now
        return cls(
            id=card_id or new_card_id(),
            question=question,
            answer_body=answer_body,
            tags=_clean_tags(tags),
            created_at=ts,
            updated_at=ts,
        )

    @property
    def is_new(self) -> bool:
        """True if the card has never been reviewed."""
        return self.box is None

    def edit(
        self,
        question: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        now: Optional[int] = None,
    ) -> "Card":
        """Manual edit of question and/or tags."""
        changes: dict = {"updated_at": now_ms() if now is None else now}
        if question is not None:
            question = " ".join(question.split())
            if not question:
                raise ValueError("question must not be empty")
            changes["question"] = question
        if tags is not None:
            changes["tags"] = _clean_tags(tags)
        return replace(self, **changes)

    def to_dict(self) -> CardDict:
        d: CardDict = {
            "id": self.id,
            "question": self.question,
            "answerBody": self.answer_body,
            "tags": list(self.tags),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.box is not None:
            d["box"] = self.box
            d["due"] = self.due
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "Card":
        return cls(
            id=data["id"],
            question=data["question"],
            answer_body=data["answerBody"],
            tags=_clean_tags(data.get("tags") or []),
            created_at=int(data["createdAt"]),
            updated_at=int(data["updatedAt"]),
            box=data.get("box"),
            due=data.get("due"),
        )


@dataclass(frozen=True)
class ImportRecord:
    """Maps an imported note's content hash to the card it produced."""

    file_name: str
    content_hash: str
    card_id: str
    created_at: int = field(default_factory=now_ms)

    def to_dict(self) -> dict:
        return {
            "fileName": self.file_name,
            "contentHash": self.content_hash,
            "cardId": self.card_id,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImportRecord":
        return cls(
            file_name=data["fileName"],
            content_hash=data["contentHash"],
            card_id=data["cardId"],
            created_at=int(data["createdAt"]),
        )
