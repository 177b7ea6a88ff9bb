"""Fingerprint repository builder (write path)."""

from __future__ import annotations

import logging
import os
import sqlite3
import tempfile
from pathlib import Path
from typing import Dict, Iterator, List, Tuple

from plagcheck.analysis.strategies import ContentAnalyzerType
from plagcheck.errors import IndexWriteError
from plagcheck.index.fingerprint import FingerprintBuilder
from plagcheck.index.repository import FingerprintRepository
from plagcheck.index.storage import SQLiteFingerprintStore
from plagcheck.models import Article, SourceLocation
from plagcheck.utils.text import split_paragraphs

LOGGER = logging.getLogger(__name__)


class FingerprintRepositoryBuilder:
    """Accumulates fingerprint buckets for one strategy and persists them."""

    def __init__(
        self,
        strategy: ContentAnalyzerType,
        *,
        window: int = 1,
        store_text: bool = True,
    ) -> None:
        self.strategy = strategy
        self.fingerprint_builder = FingerprintBuilder(window=window)
        self.store_text = store_text
        self._buckets: Dict[int, List[SourceLocation]] = {}

    @property
    def window(self) -> int:
        return self.fingerprint_builder.window

    def add_paragraph(self, article_id: str, paragraph_index: int, text: str) -> int:
        """Fingerprint one paragraph and file its locations. Returns the fingerprint count."""
        checkpoints = self.strategy.content_analyzer.analyze(text)
        positions, values = self.fingerprint_builder.select(checkpoints)
        for position, value in zip(positions.tolist(), values.tolist()):
            location = SourceLocation(
                article=article_id,
                paragraph=paragraph_index,
                position=position,
                text=checkpoints[position] if self.store_text else None,
            )
            self._buckets.setdefault(value, []).append(location)
        return len(values)

    def add_article(self, article: Article) -> int:
        added = 0
        for index, paragraph in enumerate(split_paragraphs(article.text)):
            added += self.add_paragraph(article.article_id, index, paragraph)
        LOGGER.debug("%s: %d fingerprints from %s", self.strategy.value, added, article.article_id)
        return added

    def iter_entries(self) -> Iterator[Tuple[int, SourceLocation]]:
        for value, locations in self._buckets.items():
            for location in locations:
                yield value, location

    def build(self) -> FingerprintRepository:
        return FingerprintRepository(self.strategy, self._buckets, window=self.window)

    def persist(self, path: Path) -> Path:
        """Write the index to ``path``, replacing any previous index atomically."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
            os.close(fd)
        except OSError as exc:
            raise IndexWriteError(f"Unable to write index {path}: {exc}") from exc

        tmp_path = Path(tmp_name)
        try:
            store = SQLiteFingerprintStore(tmp_path)
            try:
                with store.transaction():
                    store.write_metadata(strategy=self.strategy.value, window=self.window)
                    count = store.insert_entries(self.iter_entries())
            finally:
                store.close()
            os.replace(tmp_path, path)
        except (OSError, sqlite3.Error) as exc:
            tmp_path.unlink(missing_ok=True)
            raise IndexWriteError(f"Unable to write index {path}: {exc}") from exc

        LOGGER.info(
            "Wrote %s index to %s (%d fingerprints, %d entries)",
            self.strategy.value,
            path,
            len(self._buckets),
            count,
        )
        return path

    def __len__(self) -> int:
        return len(self._buckets)
