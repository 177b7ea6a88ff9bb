"""Checkpoint fingerprinting."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

FINGERPRINT_DTYPE = np.int64
DIGEST_SIZE = 8


def fingerprint(checkpoint: str) -> int:
    """Return the signed 64-bit fingerprint of a single checkpoint."""
    digest = hashlib.blake2b(checkpoint.encode("utf-8"), digest_size=DIGEST_SIZE).digest()
    return int.from_bytes(digest, "big", signed=True)


def winnow(values: np.ndarray, window: int) -> np.ndarray:
    """Return the positions selected by winnowing ``values``.

    The rightmost minimum of every window of ``window`` consecutive values is
    selected; a position selected by several windows is reported once.
    """
    if len(values) == 0:
        return np.empty(0, dtype=np.intp)
    if len(values) <= window:
        reversed_min = int(np.argmin(values[::-1]))
        return np.array([len(values) - 1 - reversed_min], dtype=np.intp)

    windows = sliding_window_view(values, window)
    rightmost = window - 1 - np.argmin(windows[:, ::-1], axis=1)
    positions = np.arange(len(windows)) + rightmost
    return np.unique(positions)


@dataclass(frozen=True, slots=True)
class FingerprintBuilder:
    """Turn checkpoints into fingerprints.

    With the default ``window=1`` every checkpoint yields exactly one
    fingerprint in input order. A larger window keeps only the winnowed
    subset, which the write and read paths must agree on.
    """

    window: int = 1

    def __post_init__(self) -> None:
        if self.window < 1:
            raise ValueError("window must be >= 1")

    def select(self, checkpoints: Iterable[str]) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(positions, fingerprints)`` of the selected checkpoints."""
        values = np.fromiter(
            (fingerprint(checkpoint) for checkpoint in checkpoints), dtype=FINGERPRINT_DTYPE
        )
        if self.window == 1:
            return np.arange(len(values), dtype=np.intp), values
        positions = winnow(values, self.window)
        return positions, values[positions]

    def build(self, checkpoints: Iterable[str]) -> np.ndarray:
        return self.select(checkpoints)[1]
