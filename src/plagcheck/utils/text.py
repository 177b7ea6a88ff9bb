"""Text helpers for paragraph and sentence splitting."""

from __future__ import annotations

import re
from typing import Iterable, List

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run with a single space and strip the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def split_paragraphs(text: str) -> List[str]:
    """Split text on blank lines, returning non-empty, whitespace-collapsed blocks."""
    if not text:
        return []
    blocks = (collapse_whitespace(block) for block in _PARAGRAPH_BREAK.split(text))
    return [block for block in blocks if block]


def split_sentences(text: str) -> List[str]:
    """Split a paragraph into sentences at terminal punctuation."""
    stripped = text.strip()
    if not stripped:
        return []
    return [part.strip() for part in _SENTENCE_BOUNDARY.split(stripped) if part.strip()]


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())
