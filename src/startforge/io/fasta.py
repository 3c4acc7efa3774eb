"""FASTA file handling for contig sequences.

This module provides access to genome contigs stored in FASTA format,
using pyfaidx for indexed random access.

Features:
    - Contig listing in file order with lengths
    - Whole-contig and region extraction
    - Coordinate validation

Example:
    >>> from startforge.io.fasta import GenomeAccessor
    >>> with GenomeAccessor("genome.fa") as genome:
    ...     for contig_id, sequence in genome.iter_contigs():
    ...         print(contig_id, len(sequence))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator

import pyfaidx

logger = logging.getLogger(__name__)


class GenomeAccessor:
    """Indexed FASTA access using pyfaidx.

    Attributes:
        path: Path to the FASTA file.

    Example:
        >>> genome = GenomeAccessor("genome.fa")
        >>> genome.scaffold_order[:2]
        ['NC_004347', 'NC_004349']
        >>> genome.get_sequence("NC_004347", 0, 12)
        'ttgagccaggat'
    """

    def __init__(self, fasta_path: Path | str) -> None:
        """Initialize the genome accessor.

        Args:
            fasta_path: Path to FASTA file. Will create .fai index if needed.

        Raises:
            FileNotFoundError: If FASTA file doesn't exist.
        """
        self.path = Path(fasta_path)
        if not self.path.exists():
            raise FileNotFoundError(f"FASTA file not found: {self.path}")

        self._fasta: pyfaidx.Fasta | None = None
        self._scaffold_lengths: dict[str, int] = {}
        self._scaffold_order: list[str] = []

        self._open()

    def _open(self) -> None:
        """Open the FASTA file with pyfaidx."""
        # pyfaidx will create index if it doesn't exist
        self._fasta = pyfaidx.Fasta(
            str(self.path),
            sequence_always_upper=False,
            read_ahead=10000,
            rebuild=False,
        )

        self._scaffold_order = list(self._fasta.keys())
        self._scaffold_lengths = {
            seqid: len(self._fasta[seqid]) for seqid in self._scaffold_order
        }

        logger.info(
            f"Opened FASTA: {self.path.name}, "
            f"{len(self._scaffold_order)} contigs, "
            f"{self.total_length:,} bp total"
        )

    @property
    def scaffold_order(self) -> list[str]:
        """Return list of contig names in file order."""
        return self._scaffold_order.copy()

    @property
    def total_length(self) -> int:
        """Total genome size in bases."""
        return sum(self._scaffold_lengths.values())

    def __enter__(self) -> GenomeAccessor:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the FASTA file."""
        if self._fasta is not None:
            self._fasta.close()
            self._fasta = None

    def get_length(self, seqid: str) -> int:
        """Get the length of a contig.

        Raises:
            KeyError: If seqid not in FASTA.
        """
        if seqid not in self._scaffold_lengths:
            raise KeyError(f"Unknown contig: {seqid}")
        return self._scaffold_lengths[seqid]

    def get_sequence(self, seqid: str, start: int, end: int) -> str:
        """Get sequence for region (0-based, half-open coordinates).

        Args:
            seqid: Contig name.
            start: Start position (0-based, inclusive).
            end: End position (0-based, exclusive).

        Returns:
            Sequence string, lower case.

        Raises:
            KeyError: If seqid not in FASTA.
            ValueError: If coordinates are invalid.
        """
        if self._fasta is None:
            raise RuntimeError("FASTA file not opened")

        scaffold_length = self.get_length(seqid)
        if start < 0:
            raise ValueError(f"Start position cannot be negative: {start}")
        if end > scaffold_length:
            raise ValueError(f"End position {end} exceeds contig length {scaffold_length}")
        if start > end:
            raise ValueError(f"Start ({start}) must not exceed end ({end})")
        if start == end:
            return ""

        return str(self._fasta[seqid][start:end]).lower()

    def get_contig(self, seqid: str) -> str:
        """Get a whole contig sequence, lower case."""
        return self.get_sequence(seqid, 0, self.get_length(seqid))

    def iter_contigs(self) -> Iterator[tuple[str, str]]:
        """Iterate over all contigs in file order.

        Yields:
            Tuples of (seqid, sequence).
        """
        for seqid in self._scaffold_order:
            yield seqid, self.get_contig(seqid)

    def __contains__(self, seqid: str) -> bool:
        return seqid in self._scaffold_lengths

    def __len__(self) -> int:
        return len(self._scaffold_order)
