"""Closed set of matching strategies and their analyzer table."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Iterable, List, Mapping

from plagcheck.analysis.analyzers import (
    BagOfWordsContentAnalyzer,
    ContentAnalyzer,
    SentenceContentAnalyzer,
    ShingleContentAnalyzer,
)
from plagcheck.analysis.tokenizers import SimpleTokenizer, StopwordTokenizer
from plagcheck.errors import ConfigurationError


class ContentAnalyzerType(str, Enum):
    """A (tokenizer, analyzer) pairing. The value names the index file."""

    SENTENCE_SIMPLE = "sentence-simple"
    SENTENCE_STOPWORD = "sentence-stopword"
    BAG_OF_WORDS_SIMPLE = "bag-of-words-simple"
    SHINGLE_SIMPLE = "shingle-simple"

    @property
    def content_analyzer(self) -> ContentAnalyzer:
        return CONTENT_ANALYZERS[self]

    @classmethod
    def from_name(cls, name: str) -> "ContentAnalyzerType":
        try:
            return cls(name.strip())
        except ValueError:
            known = ", ".join(member.value for member in cls)
            raise ConfigurationError(
                f"Unknown content analyzer {name!r} (expected one of: {known})"
            ) from None


def parse_strategies(names: Iterable[str]) -> List[ContentAnalyzerType]:
    """Resolve strategy names, accepting comma separated groups."""
    strategies: List[ContentAnalyzerType] = []
    for name in names:
        for part in name.split(","):
            if part.strip():
                strategies.append(ContentAnalyzerType.from_name(part))
    return strategies


_simple = SimpleTokenizer()
_stopword = StopwordTokenizer()

CONTENT_ANALYZERS: Mapping[ContentAnalyzerType, ContentAnalyzer] = MappingProxyType(
    {
        ContentAnalyzerType.SENTENCE_SIMPLE: SentenceContentAnalyzer(_simple),
        ContentAnalyzerType.SENTENCE_STOPWORD: SentenceContentAnalyzer(_stopword),
        ContentAnalyzerType.BAG_OF_WORDS_SIMPLE: BagOfWordsContentAnalyzer(_simple),
        ContentAnalyzerType.SHINGLE_SIMPLE: ShingleContentAnalyzer(_simple),
    }
)
