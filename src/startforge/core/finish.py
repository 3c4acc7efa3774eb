"""Final start calls: one best start per ORF.

The start classifier scores every candidate start independently, so an ORF
may receive several positive calls. The BestStartResolver reads the scored
candidates in file order, locates each one's ORF with the start/stop
predictions, and keeps the best start per ORF:

- candidates predicted ``other``, or outside any ORF, are rejected at once;
- the first positive candidate of an ORF is retained;
- a later candidate replaces it when its confidence is higher, or equal
  with a smaller position; the loser is rejected immediately.

When the stream ends, every retained candidate is accepted.

Two output formats are available: the full echo of the input with a
leading ``final`` column, and a compact table of accepted starts.

Example:
    >>> from startforge.core.finish import BestStartResolver, make_writer
    >>> from startforge.core.orfs import read_prediction_file
    >>> resolver = BestStartResolver(read_prediction_file("genome.stops.tbl"))
    >>> with open("final.tbl", "w") as out:
    ...     stats = resolver.resolve_file("scored.tbl", make_writer("full", out))
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, TYPE_CHECKING, Iterator, NamedTuple

import attrs

from startforge.io.tabular import TabularLine, TabularReader
from startforge.utils.locations import parse_location

if TYPE_CHECKING:
    from startforge.core.orfs import FrameOrfIndex

logger = logging.getLogger(__name__)

# Labels of the final column
LABEL_ACCEPTED = "start"
LABEL_REJECTED = "other"

# Columns read from the scored candidate table
COL_LOCATION = "location"
COL_PREDICTED = "predicted"
COL_CONFIDENCE = "confidence"

OUTPUT_FORMATS = ("full", "compact")


class OrfKey(NamedTuple):
    """Identity of an ORF: contig and terminal stop position."""

    contig_id: str
    stop_position: int


@attrs.define
class GoodStart:
    """A scored start candidate and the ORF it belongs to.

    Attributes:
        line: Input line of the candidate.
        contig_id: Contig of the candidate.
        position: Position (1-based) of the start.
        confidence: Classifier confidence.
        orf_key: Enclosing ORF, or None if no ORF contains the start.
    """

    line: TabularLine
    contig_id: str
    position: int
    confidence: float
    orf_key: OrfKey | None = None

    def beats(self, other: GoodStart) -> bool:
        """Whether this start is preferred over another in the same ORF."""
        if self.confidence != other.confidence:
            return self.confidence > other.confidence
        return self.position < other.position

    @property
    def stop_position(self) -> int | None:
        """Terminal stop of the enclosing ORF."""
        return self.orf_key.stop_position if self.orf_key is not None else None


class ResolveStats(NamedTuple):
    """Counts from one resolver pass."""

    n_records: int
    n_accepted: int
    n_rejected: int


# =============================================================================
# Output Writers
# =============================================================================


class StartWriter(ABC):
    """Output strategy for final start calls."""

    def __init__(self, handle: IO[str]) -> None:
        self.handle = handle

    @abstractmethod
    def header(self, input_header: str) -> None:
        """Write the header line."""

    @abstractmethod
    def data_line(self, label: str, start: GoodStart) -> None:
        """Write one start with its final label."""


class FullEchoWriter(StartWriter):
    """Echo every input line, prefixed with its final label."""

    def header(self, input_header: str) -> None:
        self.handle.write(f"final\t{input_header}\n")

    def data_line(self, label: str, start: GoodStart) -> None:
        self.handle.write(f"{label}\t{start.line.raw}\n")


class CompactWriter(StartWriter):
    """Write accepted starts only, with their ORF bounds."""

    COLUMNS = ("contig", "start", "stop", "confidence", "strand", "type")

    def header(self, input_header: str) -> None:
        self.handle.write("\t".join(self.COLUMNS) + "\n")

    def data_line(self, label: str, start: GoodStart) -> None:
        if label != LABEL_ACCEPTED:
            return
        self.handle.write(
            f"{start.contig_id}\t{start.position}\t{start.stop_position}\t"
            f"{start.confidence:8.6f}\t+\tCDS\n"
        )


def make_writer(output_format: str, handle: IO[str]) -> StartWriter:
    """Create the writer for an output format ("full" or "compact").

    Raises:
        ValueError: If the format is unknown.
    """
    if output_format == "full":
        return FullEchoWriter(handle)
    if output_format == "compact":
        return CompactWriter(handle)
    raise ValueError(
        f"Unknown output format: {output_format}. Choose from {', '.join(OUTPUT_FORMATS)}"
    )


# =============================================================================
# Resolver
# =============================================================================


class BestStartResolver:
    """Pick the best-scored start for each ORF.

    Attributes:
        orf_indexes: ORF lookup per contig.
    """

    def __init__(self, orf_indexes: dict[str, FrameOrfIndex]) -> None:
        self.orf_indexes = orf_indexes
        self._best: dict[OrfKey, GoodStart] = {}
        self._missing_contigs: set[str] = set()

    def locate(self, contig_id: str, position: int) -> OrfKey | None:
        """ORF key of the ORF enclosing a position, or None."""
        index = self.orf_indexes.get(contig_id)
        if index is None:
            if contig_id not in self._missing_contigs:
                self._missing_contigs.add(contig_id)
                logger.warning(f"No start/stop predictions for contig {contig_id}")
            return None

        hit = index.find_enclosing_orf(position)
        if hit is None:
            return None
        return OrfKey(contig_id, hit.stop.position)

    def offer(self, start: GoodStart, predicted: str) -> GoodStart | None:
        """Consider one candidate.

        Args:
            start: The candidate (its orf_key already resolved).
            predicted: Class predicted by the classifier.

        Returns:
            The candidate rejected by this step, if any.
        """
        if predicted == LABEL_REJECTED or start.orf_key is None:
            return start

        current = self._best.get(start.orf_key)
        if current is None:
            self._best[start.orf_key] = start
            return None

        if start.beats(current):
            self._best[start.orf_key] = start
            return current
        return start

    def accepted(self) -> Iterator[GoodStart]:
        """Retained starts, in order of first appearance of their ORF."""
        return iter(self._best.values())

    def reset(self) -> None:
        """Forget all retained starts."""
        self._best.clear()

    def resolve(self, reader: TabularReader, writer: StartWriter) -> ResolveStats:
        """Stream a scored candidate table through the resolver.

        Args:
            reader: Open reader on the scored candidates.
            writer: Output strategy.

        Returns:
            Counts of records, accepted and rejected starts.

        Raises:
            PredictionFormatError: If a column is missing or a location is
                malformed.
        """
        loc_col = reader.find_field(COL_LOCATION)
        pred_col = reader.find_field(COL_PREDICTED)
        conf_col = reader.find_field(COL_CONFIDENCE)

        writer.header(reader.header_line)
        n_records = 0
        n_rejected = 0

        for line in reader:
            n_records += 1
            location = parse_location(line.get(loc_col))
            start = GoodStart(
                line=line,
                contig_id=location.contig_id,
                position=location.position,
                confidence=line.get_float(conf_col),
                orf_key=self.locate(location.contig_id, location.position),
            )
            rejected = self.offer(start, line.get(pred_col))
            if rejected is not None:
                writer.data_line(LABEL_REJECTED, rejected)
                n_rejected += 1

        n_accepted = 0
        for start in self.accepted():
            writer.data_line(LABEL_ACCEPTED, start)
            n_accepted += 1
        self.reset()

        logger.info(
            f"Resolved {n_records:,} candidates: {n_accepted:,} accepted, "
            f"{n_rejected:,} rejected"
        )
        return ResolveStats(n_records, n_accepted, n_rejected)

    def resolve_file(self, path: Path | str | IO[str], writer: StartWriter) -> ResolveStats:
        """Open a scored candidate table and resolve it."""
        with TabularReader(path) as reader:
            return self.resolve(reader, writer)
