"""Content hash used as the dedup identity of an imported note."""

from __future__ import annotations

import hashlib


class ContentHashError(ValueError):
    """Raised when a note's content cannot be hashed."""


def canonical_content(question: str, answer_body: str) -> str:
    return f"{question}\n\n{answer_body}"


def compute_content_hash(question: str, answer_body: str) -> str:
    """
    Compute the dedup identity of a note from its question and answer.

    File name and tags are deliberately not part of the input, so a renamed
    or retagged copy of an already imported note hashes the same. This is not
    a security primitive.

    Args:
        question: Extracted question text
        answer_body: Extracted answer Markdown

    Returns:
        A 64-character hex string (SHA-256)

    Raises:
        ContentHashError: If either input is not a string or cannot be encoded
    """
    if not isinstance(question, str) or not isinstance(answer_body, str):
        raise ContentHashError(
            f"question and answer must be strings, got {type(question).__name__} "
            f"and {type(answer_body).__name__}"
        )
    try:
        data = canonical_content(question, answer_body).encode("utf-8")
    except UnicodeEncodeError as e:
        raise ContentHashError(f"Cannot encode note content: {e}") from e
    return hashlib.sha256(data).hexdigest()
