"""Exception hierarchy shared by the indexing and matching layers."""

from __future__ import annotations


class PlagCheckError(Exception):
    """Base class for every error raised by plagcheck."""


class ConfigurationError(PlagCheckError):
    """Invalid strategy names, bindings or index locations."""


class IndexIOError(PlagCheckError, OSError):
    """A persisted index could not be read or written."""


class IndexNotFoundError(ConfigurationError, IndexIOError):
    """The index path is missing or points at a directory."""


class IndexFormatError(IndexIOError):
    """The index file is unreadable, truncated or not an index at all."""


class IndexWriteError(IndexIOError):
    """Persisting an index failed."""


class InvalidArgumentError(PlagCheckError, ValueError):
    """A query argument was rejected before any work started."""


class StrategyExecutionError(PlagCheckError, RuntimeError):
    """A per-strategy task failed while answering a query."""

    def __init__(self, strategy: object, message: str) -> None:
        super().__init__(message)
        self.strategy = strategy


class CheckTimeoutError(StrategyExecutionError):
    """The query deadline expired before every strategy finished."""
