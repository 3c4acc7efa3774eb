"""Start codon candidate scanning and feature extraction.

A FeatureExtractor walks a contig from left to right. At each position it
looks for a ribosome binding site (Shine-Dalgarno sequence) and for a start
codon. Every start codon that lies inside an ORF becomes a StartCandidate
carrying a fixed-width feature vector:

    ======  ==============  ==============================================
    index   column          meaning
    ======  ==============  ==============================================
    0       gc_content      GC fraction of the ORF interior
    1       orf_len         ORF interior length
    2       region_len      distance from the start to the terminal stop
    3       rbs_len         length of the last retained RBS match
    4       rbs_gap         distance from the end of that RBS to the start
    5       start_conf      predictor confidence in the start
    6-8     atg gtg ttg     start codon one-hot
    9       stop_conf       predictor confidence in the terminal stop
    10-12   taa tag tga     stop codon one-hot
    13      pribnow_score   weighted -10 promoter box matches
    14-34   A ... Y         amino acid profile from start to stop (percent)
    ======  ==============  ==============================================

Example:
    >>> from startforge.core.orfs import read_prediction_file
    >>> from startforge.core.starts import FeatureExtractor
    >>> orfs = read_prediction_file("genome.stops.tbl")
    >>> for candidate in FeatureExtractor("chr1", sequence, orfs["chr1"]):
    ...     print(candidate.to_row())
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Iterator

import attrs
import numpy as np

from startforge.utils.locations import format_location
from startforge.utils.sequences import (
    AA_COUNT,
    AA_LIST,
    START_CODONS,
    STOP_CODONS,
    aa_content,
    check_start,
    gc_content,
    one_hot,
    stop_index,
)

if TYPE_CHECKING:
    from startforge.core.orfs import FrameOrfIndex, OrfHit

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Shine-Dalgarno consensus sequences
RBS_CONSENSUS = ("aggaggtgat", "agggggtgat", "gggaggtgat", "ggggggtgat")
RBS_SEED_LENGTH = 4

# Pribnow (-10) box consensus and per-base weights
PRIBNOW = "tataat"
PRIBNOW_WEIGHTS = (0.82, 0.89, 0.52, 0.59, 0.49, 0.89)

# Offsets of candidate Pribnow boxes relative to the start codon
PRIBNOW_FIRST = -12
PRIBNOW_LAST = -8

# Bases reserved after the last scanned position
SCAN_TAIL = 5

# Feature vector layout
GC_IDX = 0
ORF_LEN_IDX = 1
REGION_LEN_IDX = 2
RBS_LEN_IDX = 3
RBS_GAP_IDX = 4
START_CONFIDENCE_IDX = 5
START_CODON_IDX = 6  # 3 entries
STOP_CONFIDENCE_IDX = 9
STOP_CODON_IDX = 10  # 3 entries
PRIBNOW_SCORE_IDX = 13
AA_PROFILE_IDX = 14  # 21 entries
N_FEATURES = AA_PROFILE_IDX + AA_COUNT


def _feature_names() -> tuple[str, ...]:
    names = [""] * N_FEATURES
    names[GC_IDX] = "gc_content"
    names[ORF_LEN_IDX] = "orf_len"
    names[REGION_LEN_IDX] = "region_len"
    names[RBS_LEN_IDX] = "rbs_len"
    names[RBS_GAP_IDX] = "rbs_gap"
    names[START_CONFIDENCE_IDX] = "start_conf"
    names[STOP_CONFIDENCE_IDX] = "stop_conf"
    names[START_CODON_IDX : START_CODON_IDX + 3] = START_CODONS
    names[STOP_CODON_IDX : STOP_CODON_IDX + 3] = STOP_CODONS
    names[PRIBNOW_SCORE_IDX] = "pribnow_score"
    names[AA_PROFILE_IDX:] = list(AA_LIST)
    return tuple(names)


FEATURE_NAMES = _feature_names()
LOCATION_COLUMN = "location"


def feature_header() -> list[str]:
    """Column names of a feature table row (location first)."""
    return [LOCATION_COLUMN, *FEATURE_NAMES]


# =============================================================================
# Motif Detection
# =============================================================================


def check_rbs(sequence: str, position: int) -> int:
    """Length of the ribosome binding site match beginning at a position.

    The 4-mer at the position is located inside each consensus sequence;
    from every such alignment the match is extended base by base along the
    contig. The longest extension wins.

    Args:
        sequence: Contig sequence (lower case).
        position: Position (1-based) of the first base.

    Returns:
        Match length (4 to 10), or 0 if there is no RBS here.
    """
    start = position - 1
    seed = sequence[start : start + RBS_SEED_LENGTH]
    best = 0
    if len(seed) < RBS_SEED_LENGTH:
        return best

    for consensus in RBS_CONSENSUS:
        offset = consensus.find(seed)
        while offset >= 0:
            section = consensus[offset:]
            contig_part = sequence[start : start + len(section)]
            length = len(os.path.commonprefix([contig_part, section]))
            if length > best:
                best = length
            offset = consensus.find(seed, offset + 1)

    return best


def pribnow_box(sequence: str, position: int) -> float:
    """Weighted match of the Pribnow box consensus at a position.

    Args:
        sequence: Contig sequence.
        position: Position (1-based) of the first base of the hexamer.

    Returns:
        Sum of the weights of matching bases, or 0.0 when fewer than six
        bases remain.
    """
    hexamer = sequence[position - 1 : position + 5].lower()
    score = 0.0
    if len(hexamer) < len(PRIBNOW):
        return score

    for base, expected, weight in zip(hexamer, PRIBNOW, PRIBNOW_WEIGHTS):
        if base == expected:
            score += weight
    return score


def pribnow_score(sequence: str, position: int) -> float:
    """Total Pribnow box score upstream of a start codon.

    Windows beginning before the contig start contribute nothing.
    """
    score = 0.0
    for offset in range(PRIBNOW_FIRST, PRIBNOW_LAST + 1):
        box_position = position + offset
        if box_position >= 1:
            score += pribnow_box(sequence, box_position)
    return score


# =============================================================================
# Candidate Type
# =============================================================================


def _readonly(values: np.ndarray) -> np.ndarray:
    array = np.array(values, dtype=np.float64)
    array.flags.writeable = False
    return array


@attrs.frozen
class StartCandidate:
    """A start codon inside an ORF, with its feature vector.

    Attributes:
        contig_id: ID of the contig.
        position: Position (1-based) of the start codon.
        features: Read-only array of N_FEATURES values.
    """

    contig_id: str
    position: int
    features: np.ndarray = attrs.field(eq=False, repr=False, converter=_readonly)

    @property
    def location(self) -> str:
        """Location string (``contig;position``)."""
        return format_location(self.contig_id, self.position)

    @property
    def stop_position(self) -> int:
        """Position of the terminal stop codon."""
        return self.position + int(self.features[REGION_LEN_IDX])

    def to_fields(self) -> list[str]:
        """Location followed by the formatted feature values."""
        return [self.location, *(repr(float(value)) for value in self.features)]

    def to_row(self) -> str:
        """Tab-delimited feature table row."""
        return "\t".join(self.to_fields())


# =============================================================================
# Scanner
# =============================================================================


class FeatureExtractor:
    """Forward-only scanner producing start candidates for one contig.

    The scanner remembers the most recent ribosome binding site. A new
    match only replaces it when it begins after the end of the retained
    one, so the tail of a long match does not clobber it.

    Once the scan reaches the end of the contig it stays finished; build a
    new extractor to scan again.

    Attributes:
        contig_id: ID of the contig.
        sequence: Lower-cased contig sequence.
        orf_index: ORF lookup for the contig.
        last_position: Last position examined.
    """

    def __init__(self, contig_id: str, sequence: str, orf_index: FrameOrfIndex) -> None:
        """Initialize the scanner.

        Args:
            contig_id: ID of the contig.
            sequence: Contig DNA sequence (any case).
            orf_index: ORF lookup built from the contig's predictions.
        """
        self.contig_id = contig_id
        self.sequence = sequence.lower()
        self.orf_index = orf_index
        self.last_position = len(self.sequence) - SCAN_TAIL
        self._cursor = 0
        self._rbs_position = 0
        self._rbs_length = 0
        self._finished = False

    @property
    def position(self) -> int:
        """Current scan position (0 before the scan starts)."""
        return self._cursor

    @property
    def finished(self) -> bool:
        """Whether the scan has passed the last position."""
        return self._finished

    def __iter__(self) -> Iterator[StartCandidate]:
        return self

    def __next__(self) -> StartCandidate:
        candidate = self.next_candidate()
        if candidate is None:
            raise StopIteration
        return candidate

    def next_candidate(self) -> StartCandidate | None:
        """Advance to the next start codon inside an ORF.

        Returns:
            The next StartCandidate, or None when the contig is exhausted.
        """
        if self._finished:
            return None

        sequence = self.sequence
        while self._cursor < self.last_position:
            self._cursor += 1
            pos = self._cursor

            rbs = check_rbs(sequence, pos)
            if rbs > 0 and pos > self._rbs_position + self._rbs_length:
                self._rbs_position = pos
                self._rbs_length = rbs

            start_type = check_start(sequence, pos)
            if start_type < 0:
                continue

            hit = self.orf_index.find_enclosing_orf(pos)
            if hit is None:
                continue

            return StartCandidate(self.contig_id, pos, self._features(pos, start_type, hit))

        self._finished = True
        return None

    def _features(self, pos: int, start_type: int, hit: OrfHit) -> np.ndarray:
        stop = hit.stop
        data = np.zeros(N_FEATURES, dtype=np.float64)
        data[GC_IDX] = gc_content(self.sequence, stop.position, hit.length)
        data[ORF_LEN_IDX] = hit.length
        data[REGION_LEN_IDX] = stop.position - pos
        data[RBS_LEN_IDX] = self._rbs_length
        data[RBS_GAP_IDX] = pos - (self._rbs_position + self._rbs_length)
        data[START_CONFIDENCE_IDX] = self.orf_index.get_start_confidence(pos)
        data[START_CODON_IDX : START_CODON_IDX + 3] = one_hot(start_type)
        data[STOP_CONFIDENCE_IDX] = stop.confidence
        data[STOP_CODON_IDX : STOP_CODON_IDX + 3] = one_hot(stop_index(stop.codon))
        data[PRIBNOW_SCORE_IDX] = pribnow_score(self.sequence, pos)
        data[AA_PROFILE_IDX:] = aa_content(self.sequence, pos, stop.position)
        return data
