"""Corpus indexing pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Sequence

from plagcheck.analysis.strategies import ContentAnalyzerType
from plagcheck.index.builder import FingerprintRepositoryBuilder
from plagcheck.ingestion.articles import ArticleRepository, load_article
from plagcheck.utils.text import split_paragraphs

LOGGER = logging.getLogger(__name__)


def index_file_for(index_root: Path, strategy: ContentAnalyzerType) -> Path:
    """Location of a strategy's index under ``index_root``."""
    return Path(index_root) / strategy.value


@dataclass(slots=True)
class IndexStats:
    articles: int = 0
    paragraphs: int = 0
    failed: int = 0
    duplicates: int = 0
    fingerprints: Dict[str, int] = field(default_factory=dict)
    index_files: Dict[str, Path] = field(default_factory=dict)
    processed_files: list[Path] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "articles": self.articles,
            "paragraphs": self.paragraphs,
            "failed": self.failed,
            "duplicates": self.duplicates,
            "fingerprints": dict(self.fingerprints),
            "index_files": {name: str(path) for name, path in self.index_files.items()},
            "processed_files": [str(path) for path in self.processed_files],
        }


class Indexer:
    """Builds one fingerprint index per strategy from a folder of articles."""

    def __init__(
        self,
        strategies: Sequence[ContentAnalyzerType],
        index_root: Path,
        *,
        window: int = 1,
        store_text: bool = True,
    ) -> None:
        self.strategies = list(strategies)
        self.index_root = Path(index_root)
        self.window = window
        self.store_text = store_text

    def index(self, paths: Sequence[Path]) -> IndexStats:
        """Index every article found under ``paths`` and persist the indexes."""
        builders = [
            FingerprintRepositoryBuilder(strategy, window=self.window, store_text=self.store_text)
            for strategy in self.strategies
        ]
        stats = IndexStats(fingerprints={builder.strategy.value: 0 for builder in builders})

        seen: Dict[str, Path] = {}
        article_paths = ArticleRepository(paths).paths()
        if not article_paths:
            LOGGER.warning("No articles found")

        for path in article_paths:
            try:
                LOGGER.info("Processing: %s", path)
                article = load_article(path)
            except Exception as exc:
                LOGGER.error("Failed to load %s: %s", path, exc)
                stats.failed += 1
                stats.processed_files.append(path)
                continue

            original = seen.get(article.sha256)
            if original is not None:
                LOGGER.info("Skipping %s: same content as %s", path, original)
                stats.duplicates += 1
                stats.processed_files.append(path)
                continue
            seen[article.sha256] = path

            stats.articles += 1
            stats.paragraphs += len(split_paragraphs(article.text))
            for builder in builders:
                stats.fingerprints[builder.strategy.value] += builder.add_article(article)
            stats.processed_files.append(path)

        for builder in builders:
            target = index_file_for(self.index_root, builder.strategy)
            stats.index_files[builder.strategy.value] = builder.persist(target)

        return stats
