"""Import reconciliation: classify parsed notes against earlier imports and commit them.

Statuses:
- new: no import record for the note's content hash (or its card was deleted)
- duplicate: an import record exists and its card is still in the store

Actions for duplicates: skip (default), overwrite, duplicate. New notes are
always created.

Overwrite replaces question, answer, tags and updated_at but keeps the
existing card's id, created_at, box and due. Review progress survives
re-importing an edited note.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from .content_hash import compute_content_hash
from .ingest import ParsedNote, iter_markdown_files, parse_note, read_note
from .models import Card, ImportRecord, now_ms
from .store import Store

logger = logging.getLogger(__name__)

STATUS_NEW = "new"
STATUS_DUPLICATE = "duplicate"

ACTION_CREATE = "create"
ACTION_SKIP = "skip"
ACTION_OVERWRITE = "overwrite"
ACTION_DUPLICATE = "duplicate"
DUPLICATE_ACTIONS = (ACTION_SKIP, ACTION_OVERWRITE, ACTION_DUPLICATE)


@dataclass(frozen=True)
class ImportCandidate:
    file_name: str
    note: ParsedNote
    content_hash: str
    status: str  # "new" | "duplicate"
    default_action: str  # "create" for new, "skip" for duplicate
    existing_card_id: Optional[str] = None

    @property
    def is_duplicate(self) -> bool:
        return self.status == STATUS_DUPLICATE


@dataclass(frozen=True)
class FileImportError:
    file_name: str
    message: str


@dataclass
class ImportReport:
    created: List[Card] = field(default_factory=list)
    overwritten: List[Card] = field(default_factory=list)
    duplicated: List[Card] = field(default_factory=list)
    skipped: List[ImportCandidate] = field(default_factory=list)
    errors: List[FileImportError] = field(default_factory=list)

    @property
    def committed(self) -> List[Card]:
        return [*self.created, *self.overwritten, *self.duplicated]


def import_candidate(note: ParsedNote, file_name: str, store: Store) -> ImportCandidate:
    """Classify a parsed note as new or duplicate.

    Args:
        note: Parsed note to classify
        file_name: Source file name (recorded only; identity is the content hash)
        store: Store used to look up import records and cards

    Returns:
        ImportCandidate with status and default action

    Raises:
        ContentHashError: If the note content cannot be hashed
    """
    content_hash = compute_content_hash(note.question, note.answer_md)
    record = store.find_import_record_by_hash(content_hash)
    if record is not None and store.get_card(record.card_id) is not None:
        return ImportCandidate(
            file_name=file_name,
            note=note,
            content_hash=content_hash,
            status=STATUS_DUPLICATE,
            default_action=ACTION_SKIP,
            existing_card_id=record.card_id,
        )
    return ImportCandidate(
        file_name=file_name,
        note=note,
        content_hash=content_hash,
        status=STATUS_NEW,
        default_action=ACTION_CREATE,
    )


def _record(candidate: ImportCandidate, card: Card, store: Store, ts: int) -> None:
    store.put_import_record(
        ImportRecord(
            file_name=candidate.file_name,
            content_hash=candidate.content_hash,
            card_id=card.id,
            created_at=ts,
        )
    )


def _create(candidate: ImportCandidate, store: Store, ts: int) -> Card:
    note = candidate.note
    card = Card.new(note.question, note.answer_md, note.tags, now=ts)
    store.put_card(card)
    _record(candidate, card, store, ts)
    return card


def commit_import(
    candidate: ImportCandidate,
    action: Optional[str] = None,
    store: Store | None = None,
    now: Optional[int] = None,
) -> Card:
    """Commit a candidate and return the resulting card.

    Args:
        candidate: Candidate from ``import_candidate``
        action: One of skip/overwrite/duplicate for duplicates (defaults to the
            candidate's default action); ignored for new candidates
        store: Store to write to
        now: Commit time in epoch ms (defaults to the current time)

    Returns:
        The created or updated card; for skip, the existing card unchanged

    Raises:
        ValueError: If ``action`` is unknown or the store is missing
        LookupError: If a duplicate's card disappeared before commit
    """
    if store is None:
        raise ValueError("commit_import requires a store")
    ts = now_ms() if now is None else now

    if not candidate.is_duplicate:
        card = _create(candidate, store, ts)
        logger.debug("Created card %s from %s", card.id, candidate.file_name)
        return card

    action = action or candidate.default_action
    if action not in DUPLICATE_ACTIONS:
        raise ValueError(f"Unknown import action {action!r}; expected one of {DUPLICATE_ACTIONS}")

    if action == ACTION_DUPLICATE:
        card = _create(candidate, store, ts)
        logger.debug("Duplicated %s as new card %s", candidate.file_name, card.id)
        return card

    existing = store.get_card(candidate.existing_card_id or "")
    if existing is None:
        raise LookupError(f"Card {candidate.existing_card_id} no longer exists")

    if action == ACTION_SKIP:
        return existing

    note = candidate.note
    card = replace(
        existing,
        question=note.question,
        answer_body=note.answer_md,
        tags=tuple(note.tags),
        updated_at=ts,
    )
    store.put_card(card)
    _record(candidate, card, store, ts)
    logger.debug("Overwrote card %s from %s", card.id, candidate.file_name)
    return card


ActionChooser = Callable[[ImportCandidate], str]


def import_files(
    files: Iterable[Tuple[str, str]],
    store: Store,
    action_for: Optional[ActionChooser] = None,
    now: Optional[int] = None,
) -> ImportReport:
    """Parse, classify and commit a batch of ``(file_name, raw_text)`` notes.

    Each file is handled independently: a failure is recorded in
    ``report.errors`` and the batch continues. There is no batch transaction.

    Args:
        files: Pairs of file name and raw Markdown text
        store: Store to reconcile against and write to
        action_for: Optional callback choosing the action for duplicates
            (defaults to each candidate's default action, i.e. skip)
        now: Commit time in epoch ms (defaults to the current time per file)

    Returns:
        ImportReport with created/overwritten/duplicated cards, skipped candidates and errors
    """
    entries = ((file_name, lambda text=raw_text: text) for file_name, raw_text in files)
    return _import_entries(entries, store, action_for, now)


def import_paths(
    paths: Iterable[str | Path],
    store: Store,
    action_for: Optional[ActionChooser] = None,
    now: Optional[int] = None,
) -> ImportReport:
    """Like ``import_files`` but reads Markdown files and directories from disk.

    Missing paths raise ``FileNotFoundError`` before anything is committed.
    A file that cannot be read (e.g. not valid UTF-8) is reported as an
    error for that file only.
    """
    note_paths = list(iter_markdown_files(paths))
    entries = ((p.name, partial(read_note, p)) for p in note_paths)
    return _import_entries(entries, store, action_for, now)


def _import_entries(
    entries: Iterable[Tuple[str, Callable[[], str]]],
    store: Store,
    action_for: Optional[ActionChooser],
    now: Optional[int],
) -> ImportReport:
    report = ImportReport()
    for file_name, load in entries:
        try:
            note = parse_note(load(), file_name)
            candidate = import_candidate(note, file_name, store)
            action = candidate.default_action
            if candidate.is_duplicate and action_for is not None:
                action = action_for(candidate)
            if candidate.is_duplicate and action == ACTION_SKIP:
                report.skipped.append(candidate)
                logger.info("Skipped duplicate %s (card %s)", file_name, candidate.existing_card_id)
                continue
            card = commit_import(candidate, action, store, now=now)
        except Exception as e:
            logger.warning("Failed to import %s: %s", file_name, e)
            report.errors.append(FileImportError(file_name=file_name, message=str(e)))
            continue

        if not candidate.is_duplicate:
            report.created.append(card)
        elif action == ACTION_OVERWRITE:
            report.overwritten.append(card)
        else:
            report.duplicated.append(card)

    logger.info(
        "Import finished: %d created, %d overwritten, %d duplicated, %d skipped, %d errors",
        len(report.created), len(report.overwritten), len(report.duplicated),
        len(report.skipped), len(report.errors),
    )
    return report
