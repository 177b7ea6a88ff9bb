"""Core plagcheck data models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Where a checkpoint was found in the reference corpus."""

    article: str
    paragraph: int
    position: int
    text: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "article": self.article,
            "paragraph": self.paragraph,
            "position": self.position,
            "text": self.text,
        }


@dataclass(frozen=True, slots=True)
class Article:
    """Reference document loaded for index building."""

    article_id: str
    path: Path
    text: str
    sha256: str
