"""Immutable in-memory fingerprint repository (read path)."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Sequence, Tuple

import numpy as np

from plagcheck.analysis.strategies import ContentAnalyzerType
from plagcheck.errors import ConfigurationError, IndexFormatError, IndexNotFoundError
from plagcheck.index.fingerprint import FINGERPRINT_DTYPE, FingerprintBuilder
from plagcheck.index.storage import FORMAT_VERSION, SQLiteFingerprintStore
from plagcheck.models import SourceLocation

LOGGER = logging.getLogger(__name__)

_EMPTY: Tuple[SourceLocation, ...] = ()
_FINGERPRINT_RANGE = np.iinfo(FINGERPRINT_DTYPE)


class FingerprintRepository:
    """Mapping from fingerprint to the locations of every checkpoint that produced it.

    Buckets keep insertion order and are never empty. Nothing mutates the
    mapping after construction, so lookups need no locking.
    """

    __slots__ = ("strategy", "window", "_entries", "_entry_count")

    def __init__(
        self,
        strategy: ContentAnalyzerType,
        entries: Mapping[int, Sequence[SourceLocation]],
        *,
        window: int = 1,
    ) -> None:
        self.strategy = strategy
        self.window = window
        frozen = {int(key): tuple(locations) for key, locations in entries.items() if locations}
        self._entries: Mapping[int, Tuple[SourceLocation, ...]] = MappingProxyType(frozen)
        self._entry_count = sum(len(locations) for locations in frozen.values())

    @classmethod
    def load(cls, path: Path) -> "FingerprintRepository":
        """Load a persisted index fully into memory."""
        path = Path(path)
        if not path.exists():
            raise IndexNotFoundError(f"Index file not found: {path}")
        if path.is_dir():
            raise IndexNotFoundError(f"Index path is a directory: {path}")

        try:
            store = SQLiteFingerprintStore(path, readonly=True)
        except sqlite3.Error as exc:
            raise IndexFormatError(f"Unable to open index {path}: {exc}") from exc

        try:
            metadata = store.read_metadata()
            strategy, window = _parse_metadata(path, metadata)
            buckets: Dict[int, List[SourceLocation]] = {}
            for value, location in store.iter_entries():
                _check_entry(path, value, location)
                buckets.setdefault(value, []).append(location)
        except sqlite3.Error as exc:
            raise IndexFormatError(f"Invalid index {path}: {exc}") from exc
        finally:
            store.close()

        repository = cls(strategy, buckets, window=window)
        LOGGER.info(
            "Loaded %s index from %s (%d fingerprints, %d entries)",
            strategy.value,
            path,
            len(repository),
            repository.entry_count,
        )
        return repository

    @property
    def entry_count(self) -> int:
        return self._entry_count

    @property
    def fingerprint_builder(self) -> FingerprintBuilder:
        return FingerprintBuilder(window=self.window)

    def lookup(self, fingerprint: int) -> Tuple[SourceLocation, ...]:
        return self._entries.get(int(fingerprint), _EMPTY)

    def fingerprints(self) -> Iterator[int]:
        return iter(self._entries)

    def release(self) -> None:
        """Drop the in-memory mapping."""
        self._entries = MappingProxyType({})
        self._entry_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(strategy={self.strategy.value!r}, "
            f"window={self.window}, fingerprints={len(self)})"
        )


def _parse_metadata(path: Path, metadata: Mapping[str, str]) -> Tuple[ContentAnalyzerType, int]:
    version = metadata.get("format_version")
    if version != FORMAT_VERSION:
        raise IndexFormatError(f"Unsupported index format {version!r} in {path}")
    try:
        strategy = ContentAnalyzerType.from_name(metadata.get("strategy", ""))
    except ConfigurationError as exc:
        raise IndexFormatError(f"Invalid strategy recorded in {path}: {exc}") from exc
    try:
        window = int(metadata.get("window", "1"))
    except ValueError:
        raise IndexFormatError(f"Invalid window recorded in {path}") from None
    if window < 1:
        raise IndexFormatError(f"Invalid window recorded in {path}")
    return strategy, window


def _check_entry(path: Path, value: object, location: SourceLocation) -> None:
    if not isinstance(value, int) or not _FINGERPRINT_RANGE.min <= value <= _FINGERPRINT_RANGE.max:
        raise IndexFormatError(f"Invalid fingerprint {value!r} recorded in {path}")
    if (
        not isinstance(location.article, str)
        or not isinstance(location.paragraph, int)
        or not isinstance(location.position, int)
        or not isinstance(location.text, (str, type(None)))
    ):
        raise IndexFormatError(f"Invalid source location {location!r} recorded in {path}")
