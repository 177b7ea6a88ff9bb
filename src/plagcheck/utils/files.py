"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path
from typing import Collection, Iterable, Iterator

ARTICLE_SUFFIXES = frozenset({".txt", ".md", ".pdf"})


def iter_article_paths(
    inputs: Iterable[Path], suffixes: Collection[str] = ARTICLE_SUFFIXES
) -> Iterator[Path]:
    """Yield article paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            children = sorted(child for child in item.rglob("*") if child.is_file())
            yield from iter_article_paths(children, suffixes)
        elif item.is_file() and item.suffix.lower() in suffixes:
            yield item
