"""Stop-codon indexing and open reading frame lookup.

The start/stop predictor scores every candidate stop and start codon in a
genome. This module organizes those predictions per contig so that, for any
position, we can find the open reading frame (ORF) that encloses it.

For each of the three forward reading frames (``position % 3``) a
StopCodonIndex keeps the candidate stops sorted by position. The ORF
enclosing a position ends at the first stop at or after that position and
its interior runs back to the preceding stop in the same frame.

Confidences are always stored as the probability that the codon is the
class of interest (a true stop, or a true start). When the predictor
favored the other class the raw confidence is complemented.

Example:
    >>> from startforge.core.orfs import read_prediction_file
    >>> contigs = read_prediction_file("genome.stops.tbl")
    >>> hit = contigs["NC_004347"].find_enclosing_orf(231)
    >>> hit.stop.position, hit.stop.codon
    (237, 'taa')
"""

from __future__ import annotations

import bisect
import logging
from pathlib import Path
from typing import IO, Iterator, NamedTuple

import attrs

from startforge.io.tabular import TabularLine, TabularReader
from startforge.utils.locations import PredictionFormatError, parse_location
from startforge.utils.sequences import start_index

logger = logging.getLogger(__name__)

__all__ = [
    "FrameOrfIndex",
    "OrfHit",
    "PredictionFormatError",
    "PredictionRecord",
    "StopCodon",
    "StopCodonIndex",
    "iter_prediction_records",
    "orf_interior_length",
    "read_prediction_file",
    "true_class_confidence",
]

# =============================================================================
# Constants
# =============================================================================

N_FRAMES = 3

# Prediction table columns
COL_LOCATION = "location"
COL_CODON = "codon"
COL_PREDICTED = "predicted"
COL_CONFIDENCE = "confidence"

# Predicted class labels
CLASS_STOP = "stop"
CLASS_START = "start"
CLASS_OTHER = "other"


def true_class_confidence(predicted: str, target: str, confidence: float) -> float:
    """Convert a prediction confidence into confidence in a target class.

    Args:
        predicted: Class the predictor chose.
        target: Class of interest ("stop" or "start").
        confidence: Predictor confidence in its chosen class.

    Returns:
        ``confidence`` when the predictor chose the target, else
        ``1 - confidence``.
    """
    if predicted == target:
        return confidence
    return 1.0 - confidence


def orf_interior_length(position: int, preceding: int | None) -> int:
    """Interior length of the ORF ending at a stop.

    Args:
        position: Position (1-based) of the terminal stop codon.
        preceding: Position of the previous stop in the same frame, or
            None when the ORF runs to the start of the contig.

    Returns:
        Number of bases between the two stops (excluding both codons), or
        the whole codons before the stop when there is no predecessor.
    """
    if preceding is None:
        return (position - 1) // 3 * 3
    return position - preceding - 3


# =============================================================================
# Data Structures
# =============================================================================


@attrs.frozen(order=True)
class StopCodon:
    """A candidate stop codon.

    Stop codons compare, sort and hash by position only.

    Attributes:
        position: Position (1-based) of the codon in the contig.
        codon: Codon text (lower case).
        confidence: Probability that this is a true stop.
    """

    position: int
    codon: str = attrs.field(eq=False, converter=str.lower)
    confidence: float = attrs.field(eq=False)

    @classmethod
    def from_prediction(
        cls,
        position: int,
        codon: str,
        predicted: str,
        confidence: float,
    ) -> StopCodon:
        """Create a stop codon from a raw predictor call."""
        return cls(position, codon, true_class_confidence(predicted, CLASS_STOP, confidence))


class OrfHit(NamedTuple):
    """An ORF located by an enclosure query.

    Attributes:
        stop: Terminal stop codon of the ORF.
        preceding: Previous stop in the same frame, if any.
        length: Interior length of the ORF in bases.
    """

    stop: StopCodon
    preceding: StopCodon | None
    length: int

    @property
    def origin(self) -> int:
        """First interior base (1-based) of the ORF."""
        return self.stop.position - self.length


class PredictionRecord(NamedTuple):
    """One parsed row of a prediction table."""

    contig_id: str
    position: int
    codon: str
    predicted: str
    confidence: float


# =============================================================================
# Per-frame Index
# =============================================================================


class StopCodonIndex:
    """Sorted stop codons for a single reading frame of a contig.

    Enclosure queries return an OrfHit carrying the interior length. The
    most recent length is also cached in ``orf_length`` (and the stop in
    ``orf_stop``), updated by every successful query and by iteration.

    Example:
        >>> index = StopCodonIndex()
        >>> index.add_stop(30, "taa", "stop", 0.9)
        >>> index.add_stop(69, "tag", "stop", 0.4)
        >>> index.find_enclosing_orf(40).length
        36
    """

    def __init__(self) -> None:
        self._positions: list[int] = []
        self._stops: dict[int, StopCodon] = {}
        self._orf_length = 0
        self._orf_stop: StopCodon | None = None

    def add_stop(self, position: int, codon: str, predicted: str, confidence: float) -> None:
        """Store a stop codon prediction, replacing any at the same position.

        Args:
            position: Position (1-based) of the codon.
            codon: Codon text.
            predicted: Predicted class ("stop" or "other").
            confidence: Confidence in the predicted class.
        """
        if position not in self._stops:
            bisect.insort(self._positions, position)
        self._stops[position] = StopCodon.from_prediction(position, codon, predicted, confidence)

    def find_enclosing_orf(self, position: int) -> OrfHit | None:
        """Find the ORF containing a position.

        Args:
            position: Position (1-based) to enclose.

        Returns:
            OrfHit for the first stop at or after the position, or None if
            the position lies in the tail of the contig after the last stop.
        """
        idx = bisect.bisect_left(self._positions, position)
        if idx >= len(self._positions):
            return None
        return self._hit_at(idx)

    def _hit_at(self, idx: int) -> OrfHit:
        stop = self._stops[self._positions[idx]]
        preceding = self._stops[self._positions[idx - 1]] if idx > 0 else None
        length = orf_interior_length(
            stop.position, preceding.position if preceding is not None else None
        )
        self._orf_length = length
        self._orf_stop = stop
        return OrfHit(stop, preceding, length)

    @property
    def orf_length(self) -> int:
        """Interior length of the most recently located ORF."""
        return self._orf_length

    @property
    def orf_stop(self) -> StopCodon | None:
        """Terminal stop of the most recently located ORF."""
        return self._orf_stop

    def __iter__(self) -> Iterator[OrfHit]:
        """Iterate over every ORF in ascending stop order."""
        self._orf_stop = None
        for idx in range(len(self._positions)):
            yield self._hit_at(idx)

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, position: object) -> bool:
        return position in self._stops


# =============================================================================
# Per-contig Index
# =============================================================================


class FrameOrfIndex:
    """ORF lookup for all three forward frames of a contig.

    Also tracks start codon confidences for the whole contig.

    Example:
        >>> index = FrameOrfIndex()
        >>> index.add_stop(112, "tag", "stop", 0.1)
        >>> index.add_stop(61, "taa", "other", 0.9)
        >>> index.find_enclosing_orf(100).stop.position
        112
        >>> index.orf_length
        48
    """

    def __init__(self) -> None:
        self.frames: tuple[StopCodonIndex, ...] = tuple(
            StopCodonIndex() for _ in range(N_FRAMES)
        )
        self._starts: dict[int, float] = {}
        self._orf_length = 0

    @staticmethod
    def frame_of(position: int) -> int:
        """Frame index of a position."""
        return position % N_FRAMES

    def add_stop(self, position: int, codon: str, predicted: str, confidence: float) -> None:
        """Add a stop codon prediction to the appropriate frame."""
        self.frames[self.frame_of(position)].add_stop(position, codon, predicted, confidence)

    def add_start(self, position: int, predicted: str, confidence: float) -> None:
        """Record the confidence that a start codon is a true start.

        Args:
            position: Position (1-based) of the codon.
            predicted: Predicted class ("start" or "other").
            confidence: Confidence in the predicted class.
        """
        self._starts[position] = true_class_confidence(predicted, CLASS_START, confidence)

    def find_enclosing_orf(self, position: int) -> OrfHit | None:
        """Find the ORF containing a position, in the position's frame.

        Returns:
            OrfHit, or None if the position is after the frame's last stop.
        """
        frame = self.frames[self.frame_of(position)]
        hit = frame.find_enclosing_orf(position)
        self._orf_length = frame.orf_length
        return hit

    @property
    def orf_length(self) -> int:
        """Interior length of the last ORF returned by find_enclosing_orf."""
        return self._orf_length

    def get_start_confidence(self, position: int) -> float:
        """Confidence in a start codon at a position (0.0 if never scored)."""
        return self._starts.get(position, 0.0)

    @property
    def n_stops(self) -> int:
        """Total stop codons across the frames."""
        return sum(len(frame) for frame in self.frames)

    @property
    def n_starts(self) -> int:
        """Number of scored start codons."""
        return len(self._starts)

    def add_prediction(self, record: PredictionRecord) -> None:
        """Route a prediction to the start map or the stop frames by codon."""
        if start_index(record.codon) >= 0:
            self.add_start(record.position, record.predicted, record.confidence)
        else:
            self.add_stop(record.position, record.codon, record.predicted, record.confidence)


# =============================================================================
# Prediction File Reading
# =============================================================================


def iter_prediction_records(reader: TabularReader) -> Iterator[PredictionRecord]:
    """Parse the rows of a prediction table.

    Args:
        reader: Open reader positioned after the header.

    Yields:
        PredictionRecord per data row, with the codon in lower case.

    Raises:
        PredictionFormatError: If a required column is missing or a row
            has a malformed location or confidence.
    """
    loc_col = reader.find_field(COL_LOCATION)
    codon_col = reader.find_field(COL_CODON)
    pred_col = reader.find_field(COL_PREDICTED)
    conf_col = reader.find_field(COL_CONFIDENCE)

    line: TabularLine
    for line in reader:
        location = parse_location(line.get(loc_col))
        yield PredictionRecord(
            contig_id=location.contig_id,
            position=location.position,
            codon=line.get(codon_col).lower(),
            predicted=line.get(pred_col),
            confidence=line.get_float(conf_col),
        )


def read_prediction_file(source: Path | str | IO[str]) -> dict[str, FrameOrfIndex]:
    """Read a start/stop prediction file into per-contig ORF indexes.

    Args:
        source: Path to (or open handle on) the prediction table.

    Returns:
        Dictionary mapping contig ID to its FrameOrfIndex, in order of
        first appearance.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        PredictionFormatError: If the table is corrupted.
    """
    contigs: dict[str, FrameOrfIndex] = {}
    n_records = 0

    with TabularReader(source) as reader:
        for record in iter_prediction_records(reader):
            index = contigs.get(record.contig_id)
            if index is None:
                index = FrameOrfIndex()
                contigs[record.contig_id] = index
            index.add_prediction(record)
            n_records += 1

        logger.info(
            f"Read {n_records:,} codon predictions for {len(contigs)} contigs "
            f"from {reader.name}"
        )

    return contigs
