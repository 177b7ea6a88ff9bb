"""Shared fixtures: a tiny reference corpus and its indexes."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

import pytest

from plagcheck.analysis.strategies import ContentAnalyzerType
from plagcheck.index.builder import FingerprintRepositoryBuilder
from plagcheck.index.indexer import index_file_for

FOX = "The quick brown fox jumps over the lazy dog."
LOREM = "Lorem ipsum dolor sit amet. Consectetur adipiscing elit sed do eiusmod tempor."


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "corpus"
    folder.mkdir()
    (folder / "fox.txt").write_text(FOX, encoding="utf-8")
    (folder / "lorem.txt").write_text(LOREM + "\n\nA second paragraph about nothing.", encoding="utf-8")
    return folder


@pytest.fixture
def make_index() -> Callable[..., Path]:
    """Return a helper that persists one strategy's index for ``{article: text}``."""

    def _make(
        index_root: Path,
        strategy: ContentAnalyzerType,
        articles: Dict[str, str],
        *,
        window: int = 1,
    ) -> Path:
        builder = FingerprintRepositoryBuilder(strategy, window=window)
        for article_id, text in articles.items():
            builder.add_paragraph(article_id, 0, text)
        return builder.persist(index_file_for(index_root, strategy))

    return _make


@pytest.fixture
def index_root(tmp_path: Path, make_index: Callable[..., Path]) -> Path:
    root = tmp_path / "index"
    for strategy in ContentAnalyzerType:
        make_index(root, strategy, {"fox": FOX, "lorem": LOREM})
    return root
