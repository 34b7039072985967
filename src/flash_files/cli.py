"""CLI entrypoint for flash-files.

Usage:
  flash-files import notes/ --on-duplicate skip
  flash-files queue --tags gita --new-budget 5
  flash-files review --tags gita
  flash-files export --format json --out out/backup.json
  flash-files restore --input out/backup.json --mode merge
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List

from .backup import (
    RESTORE_MERGE,
    RESTORE_REPLACE,
    BackupValidationError,
    read_backup,
    restore_backup,
    write_backup,
)
from .models import now_ms
from .reconcile import DUPLICATE_ACTIONS, import_paths
from .report import print_import_summary, print_queue_summary, write_cards_csv
from .scheduler import Rating, build_review_queue, queue_stats
from .session import ACTIVE, ReviewSession
from .store import JsonFileStore, LibraryError
from .tags import add_tag_to_cards, remove_tag_from_cards, rename_tag, tag_counts
from .wiki_links import extract_wiki_links, resolve_wiki_link

DEFAULT_CONFIG = {
    "library_path": "flash_library.json",
    "on_duplicate": "skip",
    "include_new": True,
    "new_budget": 20,
}

_RATING_KEYS = {"1": Rating.AGAIN, "2": Rating.GOOD, "3": Rating.EASY}


def load_config(path: str | Path) -> dict:
    path = Path(path)
    if not path.exists():
        # Default config
        return dict(DEFAULT_CONFIG)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {path}: {e}")
    return {**DEFAULT_CONFIG, **data}


def _open_store(args: argparse.Namespace, cfg: dict) -> JsonFileStore:
    return JsonFileStore(args.library or cfg["library_path"])


def cmd_import(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    action = args.on_duplicate or cfg["on_duplicate"]
    if action not in DUPLICATE_ACTIONS:
        print(f"Error: unknown duplicate action {action!r}")
        return 1
    store = _open_store(args, cfg)
    print(f"Importing notes into {store.path}")
    try:
        report = import_paths(args.input, store, action_for=lambda _c: action)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1
    store.save()
    print_import_summary(report)
    return 1 if report.errors and not report.committed else 0


def cmd_queue(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    store = _open_store(args, cfg)
    now = now_ms()
    budget = cfg["new_budget"] if args.new_budget is None else args.new_budget
    include_new = cfg["include_new"] and not args.no_new
    cards = store.list_cards()
    queue = build_review_queue(cards, args.tags, include_new, budget, now)
    print_queue_summary(queue_stats(cards, args.tags, now), len(queue))
    for card_id in queue:
        card = store.get_card(card_id)
        box = "new" if card.box is None else f"box {card.box}"
        print(f"  [{box}] {card.question}")
    return 0


def cmd_review(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    store = _open_store(args, cfg)
    budget = cfg["new_budget"] if args.new_budget is None else args.new_budget
    include_new = cfg["include_new"] and not args.no_new
    session = ReviewSession(store)
    session.start(args.tags, include_new, budget)
    if session.state != ACTIVE:
        print("No cards to review")
        return 0
    try:
        while session.state == ACTIVE:
            card = session.current
            print()
            print(f"Q: {card.question}")
            if input("[enter] show answer, [q] quit: ").strip().lower() == "q":
                break
            session.toggle_answer()
            print(f"A: {card.answer_body}")
            choice = ""
            while choice not in _RATING_KEYS and choice != "q":
                choice = input("[1] again  [2] good  [3] easy  [q] quit: ").strip().lower()
            if choice == "q":
                break
            session.rate(_RATING_KEYS[choice])
            store.save()
    except (EOFError, KeyboardInterrupt):
        print()
    print(f"Reviewed {session.reviewed} cards ({session.remaining} left in queue)")
    session.end()
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    store = _open_store(args, cfg)
    cards = store.list_cards()
    if args.file:
        targets = [link.target for link in extract_wiki_links(Path(args.file).read_text(encoding="utf-8"))]
    else:
        targets = [args.target]
    missing = 0
    for target in targets:
        res = resolve_wiki_link(target, cards)
        if res.found:
            print(f"[[{target}]] -> {res.id} {res.question!r}")
        else:
            missing += 1
            print(f"[[{target}]] -> not found")
    return 1 if missing else 0


def cmd_export(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    store = _open_store(args, cfg)
    cards = store.list_cards()
    if args.format == "csv":
        write_cards_csv(args.out, cards)
    else:
        write_backup(args.out, cards)
    print(f"Exported {len(cards)} cards to {args.out}")
    return 0


def cmd_restore(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    try:
        cards = read_backup(args.input)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1
    except BackupValidationError as e:
        print("Error: backup failed validation")
        for msg in e.errors:
            print(f"  - {msg}")
        return 1
    store = _open_store(args, cfg)
    result = restore_backup(store, cards, mode=args.mode)
    store.save()
    print(f"Restored ({result.mode}): {result.added} added, {result.updated} updated, {result.total} total")
    return 0


def cmd_tags(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    store = _open_store(args, cfg)
    cards = store.list_cards()
    if args.tag_cmd == "list":
        for tag, count in tag_counts(cards).items():
            print(f"  {tag}: {count}")
        return 0
    ids = args.ids.split(",") if getattr(args, "ids", None) else None
    if args.tag_cmd == "add":
        updated = add_tag_to_cards(cards, args.tag, ids)
    elif args.tag_cmd == "remove":
        updated = remove_tag_from_cards(cards, args.tag, ids)
    else:
        updated = rename_tag(cards, args.old, args.new)
    changed = [new for old, new in zip(cards, updated) if new is not old]
    for card in changed:
        store.put_card(card)
    store.save()
    print(f"Updated {len(changed)} cards")
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--config",
        default="flash_files.json",
        help="Path to config JSON (optional; defaults will be used if missing)",
    )
    p.add_argument("--library", help="Path to library JSON file (overrides config library_path)")


def _add_queue_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--tags", nargs="*", default=[], help="Only cards holding all of these tags")
    p.add_argument("--no-new", action="store_true", help="Exclude never-reviewed cards")
    p.add_argument("--new-budget", type=int, help="Max new cards per session (default from config)")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="flash-files", description="Markdown notes to Leitner flashcards")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    imp = sub.add_parser("import", help="Import Markdown notes (files or directories)")
    imp.add_argument("input", nargs="+", help="Markdown files or directories")
    imp.add_argument(
        "--on-duplicate",
        choices=list(DUPLICATE_ACTIONS),
        help="What to do with notes already imported (default from config: skip)",
    )
    _add_common(imp)
    imp.set_defaults(func=cmd_import)

    queue = sub.add_parser("queue", help="Show the review queue")
    _add_queue_options(queue)
    _add_common(queue)
    queue.set_defaults(func=cmd_queue)

    review = sub.add_parser("review", help="Run an interactive review session")
    _add_queue_options(review)
    _add_common(review)
    review.set_defaults(func=cmd_review)

    resolve = sub.add_parser("resolve", help="Resolve wiki-links against the library")
    target = resolve.add_mutually_exclusive_group(required=True)
    target.add_argument("--target", help="A single link target")
    target.add_argument("--file", help="Markdown file whose [[links]] to resolve")
    _add_common(resolve)
    resolve.set_defaults(func=cmd_resolve)

    export = sub.add_parser("export", help="Export cards as JSON backup or CSV")
    export.add_argument("--format", choices=["json", "csv"], default="json")
    export.add_argument("--out", required=True, help="Output path")
    _add_common(export)
    export.set_defaults(func=cmd_export)

    restore = sub.add_parser("restore", help="Restore cards from a JSON backup")
    restore.add_argument("--input", required=True, help="Backup JSON path")
    restore.add_argument(
        "--mode",
        required=True,
        choices=[RESTORE_MERGE, RESTORE_REPLACE],
        help="merge: upsert by id; replace: delete the whole library first",
    )
    _add_common(restore)
    restore.set_defaults(func=cmd_restore)

    tags = sub.add_parser("tags", help="List or bulk-edit tags")
    tag_sub = tags.add_subparsers(dest="tag_cmd", required=True)
    tag_sub.add_parser("list", help="Tag counts")
    for name in ("add", "remove"):
        op = tag_sub.add_parser(name, help=f"{name.capitalize()} a tag on cards")
        op.add_argument("tag")
        op.add_argument("--ids", help="Comma-separated card ids (default: all cards)")
    ren = tag_sub.add_parser("rename", help="Rename a tag everywhere")
    ren.add_argument("old")
    ren.add_argument("new")
    _add_common(tags)
    tags.set_defaults(func=cmd_tags)

    return p


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except LibraryError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
