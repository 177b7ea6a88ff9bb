"""Application configuration defaults."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from plagcheck.analysis.strategies import ContentAnalyzerType, parse_strategies
from plagcheck.errors import ConfigurationError
from plagcheck.index.checker import FailurePolicy

DEFAULT_STRATEGIES: Tuple[str, ...] = tuple(member.value for member in ContentAnalyzerType)


def _get_default_index_root() -> Path:
    """Get the default index root based on execution context."""
    user_root = Path.home() / "Documents" / "PlagCheck" / "index"

    if getattr(sys, "frozen", False):
        return user_root

    # When running from source, prefer a local data/index if it exists
    local_root = Path("data/index")
    if local_root.exists():
        return local_root

    return user_root


@dataclass(slots=True)
class AppConfig:
    index_root: Path | None = None
    strategies: Tuple[str, ...] = field(default=DEFAULT_STRATEGIES)
    window: int = 1
    failure_policy: str = FailurePolicy.FAIL_FAST.value
    max_workers: int | None = None
    store_text: bool = True

    def __post_init__(self) -> None:
        if self.index_root is None:
            self.index_root = _get_default_index_root()
        self.strategies = tuple(self.strategies)

    def resolve_index_root(self, base_dir: Path | None = None) -> Path:
        if self.index_root is None:
            self.index_root = _get_default_index_root()
        if Path(self.index_root).is_absolute() or base_dir is None:
            return Path(self.index_root)
        return base_dir / self.index_root

    def analyzer_types(self) -> List[ContentAnalyzerType]:
        return parse_strategies(self.strategies)

    def policy(self) -> FailurePolicy:
        try:
            return FailurePolicy(self.failure_policy)
        except ValueError:
            raise ConfigurationError(f"Unknown failure policy: {self.failure_policy!r}") from None
