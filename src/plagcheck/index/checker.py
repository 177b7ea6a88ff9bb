"""Concurrent multi-strategy matching against loaded fingerprint repositories."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ALL_COMPLETED, FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from plagcheck.analysis.strategies import ContentAnalyzerType, parse_strategies
from plagcheck.errors import (
    CheckTimeoutError,
    ConfigurationError,
    IndexNotFoundError,
    InvalidArgumentError,
    StrategyExecutionError,
)
from plagcheck.index.indexer import index_file_for
from plagcheck.index.repository import FingerprintRepository
from plagcheck.models import SourceLocation

LOGGER = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    """What a query does when one strategy's task raises."""

    FAIL_FAST = "fail-fast"
    PARTIAL = "partial"


@dataclass(frozen=True, slots=True)
class RepositoryBinding:
    strategy: ContentAnalyzerType
    index_file: Path

    def __post_init__(self) -> None:
        if not isinstance(self.strategy, ContentAnalyzerType):
            raise ConfigurationError(f"Unknown content analyzer: {self.strategy!r}")
        object.__setattr__(self, "index_file", Path(self.index_file))


@dataclass(frozen=True, slots=True)
class StrategyMatches:
    strategy: ContentAnalyzerType
    matches: Tuple[SourceLocation, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict:
        data: dict = {
            "strategy": self.strategy.value,
            "matches": [location.to_dict() for location in self.matches],
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True, slots=True)
class CheckResult:
    """One ``StrategyMatches`` per registered strategy, in registration order."""

    entries: Tuple[StrategyMatches, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[StrategyMatches]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> StrategyMatches:
        return self.entries[index]

    def for_strategy(self, strategy: ContentAnalyzerType) -> Tuple[SourceLocation, ...]:
        for entry in self.entries:
            if entry.strategy is strategy:
                return entry.matches
        raise KeyError(strategy)

    @property
    def has_matches(self) -> bool:
        return any(entry.matches for entry in self.entries)

    def to_dict(self) -> Dict[str, List[dict]]:
        return {
            entry.strategy.value: [location.to_dict() for location in entry.matches]
            for entry in self.entries
        }


class Checker:
    """Answers "has this paragraph appeared before" across several strategies at once.

    Each binding contributes one read-only repository. ``check`` runs one task
    per binding on a thread pool; every task owns exactly one slot of the
    result, and the slots are only read after all tasks have been joined.
    """

    def __init__(
        self,
        bindings: Sequence[RepositoryBinding],
        *,
        failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST,
        max_workers: Optional[int] = None,
    ) -> None:
        if bindings is None:
            raise ConfigurationError("bindings must not be None")
        bindings = tuple(bindings)
        _validate_bindings(bindings)

        self.failure_policy = FailurePolicy(failure_policy)
        self._bindings = bindings
        self._repositories = _load_repositories(bindings)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or len(bindings),
            thread_name_prefix="plagcheck-strategy",
        )

    @classmethod
    def from_index_root(
        cls,
        index_root: Path,
        strategy_names: Sequence[str],
        **kwargs,
    ) -> "Checker":
        """Bind each named strategy to ``index_root / <name>``."""
        index_root = Path(index_root)
        if not index_root.is_dir():
            raise ConfigurationError(f"Index root is not a directory: {index_root}")
        strategies = parse_strategies(strategy_names)
        bindings = [
            RepositoryBinding(strategy, index_file_for(index_root, strategy))
            for strategy in strategies
        ]
        return cls(bindings, **kwargs)

    @property
    def bindings(self) -> Tuple[RepositoryBinding, ...]:
        return self._bindings

    @property
    def strategies(self) -> List[ContentAnalyzerType]:
        return [binding.strategy for binding in self._bindings]

    def check(self, paragraph: str, *, timeout: Optional[float] = None) -> CheckResult:
        """Match ``paragraph`` against every repository concurrently."""
        if paragraph is None:
            raise InvalidArgumentError("paragraph must not be None")
        if not isinstance(paragraph, str):
            raise InvalidArgumentError(
                f"paragraph must be a string, not {type(paragraph).__name__}"
            )

        slots: List[Optional[StrategyMatches]] = [None] * len(self._repositories)
        cancelled = threading.Event()
        futures: List[Future] = [
            self._executor.submit(self._check_one, index, paragraph, slots, cancelled)
            for index in range(len(self._repositories))
        ]

        return_when = (
            FIRST_EXCEPTION if self.failure_policy is FailurePolicy.FAIL_FAST else ALL_COMPLETED
        )
        deadline = None if timeout is None else time.monotonic() + timeout
        done, not_done = wait(futures, timeout=timeout, return_when=return_when)
        failures = [
            (index, future.exception())
            for index, future in enumerate(futures)
            if future in done and future.exception() is not None
        ]
        if not_done:
            cancelled.set()
            for future in not_done:
                future.cancel()
            if return_when == ALL_COMPLETED or not failures:
                # Stragglers only ever write into this call's own slots.
                raise CheckTimeoutError(
                    None, f"Check did not complete within {timeout} seconds"
                )
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            wait(not_done, timeout=remaining)

        if failures and self.failure_policy is FailurePolicy.FAIL_FAST:
            index, exc = failures[0]
            strategy = self._bindings[index].strategy
            LOGGER.error("Strategy %s failed: %s", strategy.value, exc)
            raise StrategyExecutionError(
                strategy, f"Strategy {strategy.value} failed: {exc}"
            ) from exc

        for index, exc in failures:
            strategy = self._bindings[index].strategy
            LOGGER.warning("Strategy %s failed, returning partial results: %s", strategy.value, exc)
            slots[index] = StrategyMatches(strategy=strategy, error=str(exc))

        return CheckResult(entries=tuple(slots))  # type: ignore[arg-type]

    def _check_one(
        self,
        index: int,
        paragraph: str,
        slots: List[Optional[StrategyMatches]],
        cancelled: threading.Event,
    ) -> None:
        strategy = self._bindings[index].strategy
        repository = self._repositories[index]

        checkpoints = strategy.content_analyzer.analyze(paragraph)
        fingerprints = repository.fingerprint_builder.build(checkpoints)
        matches: List[SourceLocation] = []
        for value in fingerprints.tolist():
            if cancelled.is_set():
                return
            matches.extend(repository.lookup(value))

        LOGGER.debug(
            "%s: %d checkpoints, %d fingerprints, %d matches",
            strategy.value,
            len(checkpoints),
            len(fingerprints),
            len(matches),
        )
        slots[index] = StrategyMatches(strategy=strategy, matches=tuple(matches))

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "Checker":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Checker):
            return NotImplemented
        return self._bindings == other._bindings

    def __hash__(self) -> int:
        return hash(self._bindings)

    def __repr__(self) -> str:
        bindings = ", ".join(
            f"{binding.strategy.value}={binding.index_file}" for binding in self._bindings
        )
        return f"{type(self).__name__}([{bindings}])"


def _validate_bindings(bindings: Sequence[RepositoryBinding]) -> None:
    if not bindings:
        raise ConfigurationError("At least one repository binding is required")
    seen = set()
    for binding in bindings:
        if not isinstance(binding, RepositoryBinding):
            raise ConfigurationError(f"Not a repository binding: {binding!r}")
        if binding.strategy in seen:
            raise ConfigurationError(f"Strategy bound more than once: {binding.strategy.value}")
        seen.add(binding.strategy)
        if not binding.index_file.exists():
            raise IndexNotFoundError(f"Index file not found: {binding.index_file}")
        if binding.index_file.is_dir():
            raise IndexNotFoundError(f"Index path is a directory: {binding.index_file}")


def _load_repositories(
    bindings: Sequence[RepositoryBinding],
) -> Tuple[FingerprintRepository, ...]:
    staged: List[FingerprintRepository] = []
    try:
        for binding in bindings:
            repository = FingerprintRepository.load(binding.index_file)
            staged.append(repository)
            if repository.strategy is not binding.strategy:
                raise ConfigurationError(
                    f"{binding.index_file} holds a {repository.strategy.value} index, "
                    f"expected {binding.strategy.value}"
                )
    except Exception:
        LOGGER.error("Loading indexes failed, releasing %d staged repositories", len(staged))
        for loaded in staged:
            loaded.release()
        raise
    return tuple(staged)
