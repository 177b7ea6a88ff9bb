"""Tokenizers shared by the content analyzers."""

from __future__ import annotations

import re
from typing import List, Protocol

_WORD = re.compile(r"\w+")

ENGLISH_STOPWORDS = frozenset(
    """
    a about above after again against all am an and any are as at be because been
    before being below between both but by can could did do does doing down during
    each few for from further had has have having he her here hers herself him
    himself his how i if in into is it its itself just me more most my myself no
    nor not now of off on once only or other our ours ourselves out over own same
    she should so some such than that the their theirs them themselves then there
    these they this those through to too under until up very was we were what when
    where which while who whom why will with would you your yours yourself
    yourselves
    """.split()
)


class Tokenizer(Protocol):
    def tokenize(self, text: str) -> List[str]: ...


class SimpleTokenizer:
    """Lower-cased Unicode word tokens."""

    def tokenize(self, text: str) -> List[str]:
        return _WORD.findall(text.lower())

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class StopwordTokenizer(SimpleTokenizer):
    """Word tokens with common English function words removed."""

    def __init__(self, stopwords: frozenset[str] = ENGLISH_STOPWORDS) -> None:
        self.stopwords = stopwords

    def tokenize(self, text: str) -> List[str]:
        return [token for token in super().tokenize(text) if token not in self.stopwords]
