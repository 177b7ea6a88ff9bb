"""Tests for data models and the error hierarchy."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from plagcheck.errors import (
    CheckTimeoutError,
    ConfigurationError,
    IndexFormatError,
    IndexIOError,
    IndexNotFoundError,
    IndexWriteError,
    InvalidArgumentError,
    PlagCheckError,
    StrategyExecutionError,
)
from plagcheck.models import Article, SourceLocation


class TestSourceLocation:
    def test_to_dict(self) -> None:
        location = SourceLocation("a.txt", 2, 5, "some text")
        assert location.to_dict() == {
            "article": "a.txt",
            "paragraph": 2,
            "position": 5,
            "text": "some text",
        }

    def test_text_is_optional(self) -> None:
        assert SourceLocation("a.txt", 0, 0).text is None

    def test_frozen_and_hashable(self) -> None:
        location = SourceLocation("a.txt", 0, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            location.position = 3  # type: ignore[misc]
        assert len({location, SourceLocation("a.txt", 0, 1)}) == 1


def test_article_fields(tmp_path: Path) -> None:
    article = Article("id", tmp_path / "a.txt", "Body.", "abc")
    assert article.sha256 == "abc"
    with pytest.raises(dataclasses.FrozenInstanceError):
        article.text = "other"  # type: ignore[misc]


class TestErrors:
    """Test error hierarchy."""

    @pytest.mark.parametrize(
        "error_cls",
        [
            ConfigurationError,
            IndexIOError,
            IndexNotFoundError,
            IndexFormatError,
            IndexWriteError,
            InvalidArgumentError,
        ],
    )
    def test_all_derive_from_base(self, error_cls: type) -> None:
        assert issubclass(error_cls, PlagCheckError)

    def test_missing_index_is_configuration_and_io(self) -> None:
        error = IndexNotFoundError("missing")
        assert isinstance(error, ConfigurationError)
        assert isinstance(error, OSError)

    def test_invalid_argument_is_value_error(self) -> None:
        assert isinstance(InvalidArgumentError("bad"), ValueError)

    def test_strategy_execution_error_carries_strategy(self) -> None:
        error = StrategyExecutionError("shingle-simple", "boom")
        assert error.strategy == "shingle-simple"
        assert str(error) == "boom"
        assert isinstance(error, RuntimeError)

    def test_timeout_is_strategy_error(self) -> None:
        error = CheckTimeoutError(None, "late")
        assert isinstance(error, StrategyExecutionError)
        assert error.strategy is None
