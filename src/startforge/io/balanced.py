"""Class-balanced output of labeled training records.

Training tables are heavily skewed: a genome has far more false start
codons than true ones. A BalancedWriter with a non-zero fuzz factor holds
every record in memory and, when closed, writes at most
``ceil(smallest_class * fuzz)`` randomly chosen records of each class in
shuffled order. With a fuzz factor of 0 records pass straight through.

Every record is written as ``label<TAB>line``.

Example:
    >>> import sys
    >>> from startforge.io.balanced import BalancedWriter
    >>> with BalancedWriter(sys.stdout, fuzz=1.0, seed=1) as writer:
    ...     writer.write_immediate("frame", "location\\tgc_content")
    ...     writer.write("start", "chr1;190\\t0.5")
    ...     writer.write("other", "chr1;211\\t0.4")
"""

from __future__ import annotations

import logging
import math
from typing import IO

import numpy as np

logger = logging.getLogger(__name__)

MIN_FUZZ = 1.0
MAX_FUZZ = 2.0


def check_fuzz(fuzz: float) -> float:
    """Validate a balance fuzz factor.

    Raises:
        ValueError: If the factor is neither 0 nor in [1.0, 2.0].
    """
    if fuzz != 0 and not MIN_FUZZ <= fuzz <= MAX_FUZZ:
        raise ValueError(
            f"Balance factor must be 0 (off) or between {MIN_FUZZ} and {MAX_FUZZ} inclusive"
        )
    return fuzz


class BalancedWriter:
    """Writer that optionally balances labeled records by class.

    Attributes:
        handle: Output stream.
        fuzz: Balance fuzz factor; 0 disables balancing.
        counts: Records written per label.
    """

    def __init__(
        self,
        handle: IO[str],
        fuzz: float = 0.0,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        """Initialize the writer.

        Args:
            handle: Output stream.
            fuzz: Balance fuzz factor (0, or 1.0 to 2.0).
            seed: Seed for the random generator (ignored if rng is given).
            rng: Random generator to draw from.
        """
        self.handle = handle
        self.fuzz = check_fuzz(fuzz)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.counts: dict[str, int] = {}
        self._buffer: dict[str, list[str]] = {}
        self._closed = False

    @property
    def balanced(self) -> bool:
        """Whether records are buffered for balancing."""
        return self.fuzz != 0

    def _emit(self, label: str, line: str) -> None:
        self.handle.write(f"{label}\t{line}\n")
        self.counts[label] = self.counts.get(label, 0) + 1

    def write_immediate(self, label: str, line: str) -> None:
        """Write a line at once, bypassing the buffer (e.g. the header)."""
        self.handle.write(f"{label}\t{line}\n")

    def write(self, label: str, line: str) -> None:
        """Write, or buffer, one labeled record."""
        if self._closed:
            raise ValueError("write to a closed BalancedWriter")
        if self.balanced:
            self._buffer.setdefault(label, []).append(line)
        else:
            self._emit(label, line)

    def class_limit(self) -> int:
        """Maximum records per class at the current buffer sizes."""
        if not self._buffer:
            return 0
        smallest = min(len(lines) for lines in self._buffer.values())
        return math.ceil(smallest * self.fuzz)

    def close(self) -> dict[str, int]:
        """Flush buffered records.

        Returns:
            Number of records written per label.
        """
        if self._closed:
            return self.counts
        self._closed = True

        if self._buffer:
            limit = self.class_limit()
            chosen: list[tuple[str, str]] = []
            for label, lines in self._buffer.items():
                keep = min(limit, len(lines))
                picks = self.rng.choice(len(lines), size=keep, replace=False)
                chosen.extend((label, lines[i]) for i in picks)
                logger.debug(f"Balanced class {label}: {keep} of {len(lines)} records")

            for i in self.rng.permutation(len(chosen)):
                self._emit(*chosen[i])
            self._buffer.clear()

        self.handle.flush()
        return self.counts

    def __enter__(self) -> BalancedWriter:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
