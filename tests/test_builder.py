"""Tests for FingerprintRepositoryBuilder (write path)."""

from __future__ import annotations

from pathlib import Path

import pytest

from plagcheck.analysis.strategies import ContentAnalyzerType
from plagcheck.errors import IndexWriteError
from plagcheck.index.builder import FingerprintRepositoryBuilder
from plagcheck.index.fingerprint import fingerprint
from plagcheck.index.repository import FingerprintRepository
from plagcheck.models import Article, SourceLocation

STRATEGY = ContentAnalyzerType.SENTENCE_SIMPLE


def _article(article_id: str, text: str) -> Article:
    return Article(article_id=article_id, path=Path(article_id), text=text, sha256=article_id)


class TestAddParagraph:
    """Test bucket accumulation."""

    def test_returns_fingerprint_count(self) -> None:
        builder = FingerprintRepositoryBuilder(STRATEGY)
        assert builder.add_paragraph("doc", 0, "One sentence. Two sentence.") == 2
        assert builder.add_paragraph("doc", 1, "   ") == 0

    def test_documents_sharing_a_fingerprint(self) -> None:
        """Locations from several documents are unioned, in insertion order."""
        builder = FingerprintRepositoryBuilder(STRATEGY)
        builder.add_paragraph("first", 0, "Shared sentence here.")
        builder.add_paragraph("second", 4, "Shared sentence here.")

        locations = builder.build().lookup(fingerprint("shared sentence here"))

        assert [loc.article for loc in locations] == ["first", "second"]
        assert locations[1] == SourceLocation("second", 4, 0, "shared sentence here")

    def test_repeated_checkpoint_in_one_document(self) -> None:
        builder = FingerprintRepositoryBuilder(STRATEGY)
        builder.add_paragraph("doc", 0, "Again. Something else. Again.")

        locations = builder.build().lookup(fingerprint("again"))

        assert [loc.position for loc in locations] == [0, 2]

    def test_without_text(self) -> None:
        builder = FingerprintRepositoryBuilder(STRATEGY, store_text=False)
        builder.add_paragraph("doc", 0, "No text kept.")

        (location,) = builder.build().lookup(fingerprint("no text kept"))

        assert location.text is None

    def test_add_article_numbers_paragraphs(self) -> None:
        builder = FingerprintRepositoryBuilder(STRATEGY)
        added = builder.add_article(_article("doc", "First block.\n\nSecond block."))

        assert added == 2
        (location,) = builder.build().lookup(fingerprint("second block"))
        assert location.paragraph == 1

    def test_winnowed_positions(self) -> None:
        """With a window, stored positions point at the selected checkpoints."""
        builder = FingerprintRepositoryBuilder(ContentAnalyzerType.SHINGLE_SIMPLE, window=3)
        text = " ".join(f"word{i}" for i in range(30))
        builder.add_paragraph("doc", 0, text)

        checkpoints = ContentAnalyzerType.SHINGLE_SIMPLE.content_analyzer.analyze(text)
        repo = builder.build()
        assert repo.window == 3
        assert 0 < len(repo) < len(checkpoints)
        for value in repo.fingerprints():
            for location in repo.lookup(value):
                assert fingerprint(checkpoints[location.position]) == value


class TestPersist:
    """Test atomic persistence."""

    def test_persist_creates_parents(self, tmp_path: Path) -> None:
        builder = FingerprintRepositoryBuilder(STRATEGY)
        builder.add_paragraph("doc", 0, "Hello world.")

        target = builder.persist(tmp_path / "nested" / "dir" / STRATEGY.value)

        assert target.is_file()
        assert FingerprintRepository.load(target).lookup(fingerprint("hello world"))

    def test_persist_replaces_previous_index(self, tmp_path: Path) -> None:
        target = tmp_path / STRATEGY.value
        old = FingerprintRepositoryBuilder(STRATEGY)
        old.add_paragraph("old", 0, "Old text.")
        old.persist(target)

        new = FingerprintRepositoryBuilder(STRATEGY)
        new.add_paragraph("new", 0, "New text.")
        new.persist(target)

        loaded = FingerprintRepository.load(target)
        assert loaded.lookup(fingerprint("old text")) == ()
        assert loaded.lookup(fingerprint("new text"))[0].article == "new"

    def test_no_temporary_files_left(self, tmp_path: Path) -> None:
        builder = FingerprintRepositoryBuilder(STRATEGY)
        builder.add_paragraph("doc", 0, "Hello world.")
        builder.persist(tmp_path / STRATEGY.value)

        assert [p.name for p in tmp_path.iterdir()] == [STRATEGY.value]

    def test_persist_window_metadata(self, tmp_path: Path) -> None:
        builder = FingerprintRepositoryBuilder(ContentAnalyzerType.SHINGLE_SIMPLE, window=4)
        path = builder.persist(tmp_path / "shingle")

        loaded = FingerprintRepository.load(path)
        assert loaded.window == 4
        assert loaded.strategy is ContentAnalyzerType.SHINGLE_SIMPLE

    def test_unwritable_destination(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        builder = FingerprintRepositoryBuilder(STRATEGY)

        with pytest.raises(IndexWriteError):
            builder.persist(blocker / STRATEGY.value)

    def test_failed_write_cleans_up(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("plagcheck.index.builder.os.replace", fail)
        builder = FingerprintRepositoryBuilder(STRATEGY)
        builder.add_paragraph("doc", 0, "Hello world.")

        with pytest.raises(IndexWriteError, match="disk full"):
            builder.persist(tmp_path / STRATEGY.value)

        assert list(tmp_path.iterdir()) == []
