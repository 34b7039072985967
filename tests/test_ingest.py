"""Tests for note parsing and file ingest."""

import tempfile
from pathlib import Path

import pytest
from flash_files.extract_qa import NO_CONTENT_PLACEHOLDER
from flash_files.ingest import ParsedNote, parse_note, iter_markdown_files, read_note, write_csv

DUTY_NOTE = """---
title: How can we act without attachment?
tags: [gita, karma-yoga, action]
---

"You have a right to perform your prescribed duty, but you are not entitled to the fruits of action."

#Detachment
"""

CODE_NOTE = """# Python decorators

A decorator wraps a function. #python

```python
# not a heading
def f():  #decorator-inside-code
    pass
```

~~~
#tilde-code
~~~
#programming
"""


class TestParseNote:
    def test_title_and_tags(self):
        note = parse_note(DUTY_NOTE, "duty-and-detachment.md")
        assert note.question == "How can we act without attachment?"
        assert note.answer_md.startswith("\n\"You have a right")
        assert set(note.tags) == {"gita", "karma-yoga", "action", "detachment"}

    def test_code_fence_tags_ignored(self):
        note = parse_note(CODE_NOTE, "decorators.md")
        assert note.question == "Python decorators"
        assert set(note.tags) == {"python", "programming"}

    def test_scalar_frontmatter_tag(self):
        note = parse_note("---\ntags: Gita\n---\nWhat is dharma?\nDuty.", "x.md")
        assert note.tags == ("gita",)
        assert note.question == "What is dharma?"

    def test_filename_note(self):
        note = parse_note("", "202509301145 Supreme Person.md")
        assert note == ParsedNote(question="Supreme Person", answer_md=NO_CONTENT_PLACEHOLDER, tags=())

    def test_heading_tag_not_collected(self):
        """Tags are read from the answer only; the heading line is the question."""
        note = parse_note("# About #meta\nbody", "x.md")
        assert note.question == "About #meta"
        assert note.tags == ()


class TestNoteFiles:
    def test_directory_recursive_sorted(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "sub").mkdir()
            (root / "b.md").write_text("# B", encoding="utf-8")
            (root / "sub" / "a.markdown").write_text("# A", encoding="utf-8")
            (root / "ignore.txt").write_text("x", encoding="utf-8")
            paths = list(iter_markdown_files([root]))
            assert sorted(p.name for p in paths) == ["a.markdown", "b.md"]
            assert read_note(root / "b.md") == "# B"

    def test_missing_path(self):
        with pytest.raises(FileNotFoundError):
            list(iter_markdown_files(["/nonexistent/note.md"]))

    def test_read_note_rejects_invalid_utf8(self):
        """Decoding errors surface to the caller, which records them per file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "bad.md"
            path.write_bytes(b"# Bad\n\xff\xfe body")
            with pytest.raises(UnicodeDecodeError):
                read_note(path)


class TestWriteCsv:
    def test_empty_rows(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "out.csv"
            write_csv(path, [])
            assert path.read_text(encoding="utf-8") == ""
