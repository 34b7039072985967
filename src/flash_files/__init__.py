"""flash-files: Markdown notes to spaced-repetition flashcards.

Pipeline: front matter -> question/answer -> tags -> content hash ->
import reconciliation against a store. Committed cards feed wiki-link
resolution and the Leitner review queue.
"""

from .ingest import ParsedNote, parse_note
from .models import Card, ImportRecord
from .reconcile import commit_import, import_candidate, import_files
from .scheduler import Rating, build_review_queue, next_box_and_due
from .wiki_links import resolve_wiki_link

__all__ = [
    "Card",
    "ImportRecord",
    "ParsedNote",
    "Rating",
    "build_review_queue",
    "commit_import",
    "import_candidate",
    "import_files",
    "next_box_and_due",
    "parse_note",
    "resolve_wiki_link",
]
