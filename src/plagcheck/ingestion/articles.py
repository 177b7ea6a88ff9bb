"""Reference article discovery and loading."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Iterator, List, Sequence

from plagcheck.ingestion.pdf_loader import load_pdf_text
from plagcheck.models import Article
from plagcheck.utils.files import iter_article_paths

LOGGER = logging.getLogger(__name__)


def load_article(path: Path) -> Article:
    """Load a text, Markdown or PDF file as an article.

    ``sha256`` is the digest of the extracted text, so copies of the same
    content in different files or formats share it.
    """
    path = Path(path)
    LOGGER.debug("Loading article %s", path)
    if path.suffix.lower() == ".pdf":
        text = load_pdf_text(path)
    else:
        text = path.read_text(encoding="utf-8", errors="replace")
    return Article(
        article_id=path.as_posix(),
        path=path,
        text=text,
        sha256=hashlib.sha256(text.encode("utf-8")).hexdigest(),
    )


class ArticleRepository:
    """Articles found under a fixed list of folders."""

    def __init__(self, folders: Sequence[Path]) -> None:
        self.folders: List[Path] = [Path(folder) for folder in folders]

    def paths(self) -> List[Path]:
        return list(iter_article_paths(self.folders))

    def __iter__(self) -> Iterator[Article]:
        for path in self.paths():
            yield load_article(path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArticleRepository):
            return NotImplemented
        return self.folders == other.folders

    def __repr__(self) -> str:
        return f"{type(self).__name__}(folders={[str(f) for f in self.folders]!r})"
