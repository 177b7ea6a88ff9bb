"""Content analyzers turning raw text into ordered checkpoints.

Every analyzer is a pure function of its input and holds no mutable state, so
one instance is shared by all threads of a checker.
"""

from __future__ import annotations

from typing import List, Protocol

from plagcheck.analysis.tokenizers import Tokenizer
from plagcheck.utils.text import split_sentences

DEFAULT_SHINGLE_SIZE = 5


class ContentAnalyzer(Protocol):
    def analyze(self, text: str) -> List[str]: ...


class SentenceContentAnalyzer:
    """One checkpoint per sentence: its tokens joined by single spaces."""

    def __init__(self, tokenizer: Tokenizer) -> None:
        self.tokenizer = tokenizer

    def analyze(self, text: str) -> List[str]:
        checkpoints: List[str] = []
        for sentence in split_sentences(text):
            tokens = self.tokenizer.tokenize(sentence)
            if tokens:
                checkpoints.append(" ".join(tokens))
        return checkpoints

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.tokenizer!r})"


class BagOfWordsContentAnalyzer(SentenceContentAnalyzer):
    """One checkpoint per sentence built from its distinct tokens in sorted order.

    Reordering the words of a sentence does not change its checkpoint.
    """

    def analyze(self, text: str) -> List[str]:
        checkpoints: List[str] = []
        for sentence in split_sentences(text):
            tokens = sorted(set(self.tokenizer.tokenize(sentence)))
            if tokens:
                checkpoints.append(" ".join(tokens))
        return checkpoints


class ShingleContentAnalyzer:
    """Sliding windows of ``size`` consecutive tokens across the whole text."""

    def __init__(self, tokenizer: Tokenizer, *, size: int = DEFAULT_SHINGLE_SIZE) -> None:
        if size < 1:
            raise ValueError("size must be >= 1")
        self.tokenizer = tokenizer
        self.size = size

    def analyze(self, text: str) -> List[str]:
        tokens = self.tokenizer.tokenize(text)
        if not tokens:
            return []
        if len(tokens) <= self.size:
            return [" ".join(tokens)]
        return [
            " ".join(tokens[start : start + self.size])
            for start in range(len(tokens) - self.size + 1)
        ]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.tokenizer!r}, size={self.size})"
