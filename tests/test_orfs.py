"""Unit tests for startforge.core.orfs module.

Tests cover:
- Confidence complement rule
- StopCodon ordering and equality
- StopCodonIndex enclosure queries and iteration
- FrameOrfIndex frame routing and start confidences
- Prediction file reading
"""

import io
from pathlib import Path

import pytest

from startforge.core.orfs import (
    FrameOrfIndex,
    PredictionFormatError,
    StopCodon,
    StopCodonIndex,
    orf_interior_length,
    read_prediction_file,
    true_class_confidence,
)


# =============================================================================
# Helper Tests
# =============================================================================


class TestConfidence:
    """Tests for true_class_confidence."""

    def test_predicted_target(self) -> None:
        """The raw confidence is kept when the predictor chose the target."""
        assert true_class_confidence("stop", "stop", 0.36) == pytest.approx(0.36)

    def test_predicted_other(self) -> None:
        """The confidence is complemented otherwise."""
        assert true_class_confidence("other", "stop", 0.75) == pytest.approx(0.25)
        assert true_class_confidence("other", "start", 0.6) == pytest.approx(0.4)


class TestOrfInteriorLength:
    """Tests for orf_interior_length."""

    def test_with_predecessor(self) -> None:
        """Length excludes both stop codons."""
        assert orf_interior_length(102, 69) == 30

    def test_first_stop(self) -> None:
        """Without predecessor the length is the whole codons before the stop."""
        assert orf_interior_length(30, None) == 27
        assert orf_interior_length(40, None) == 39
        assert orf_interior_length(1, None) == 0


class TestStopCodon:
    """Tests for the StopCodon record."""

    def test_codon_lower_case(self) -> None:
        """Codon text is normalized to lower case."""
        assert StopCodon(102, "TAA", 0.8).codon == "taa"

    def test_equality_by_position(self) -> None:
        """Stops compare by position only."""
        assert StopCodon(30, "taa", 0.7) == StopCodon(30, "tag", 0.25)
        assert hash(StopCodon(30, "taa", 0.7)) == hash(StopCodon(30, "tag", 0.25))
        assert StopCodon(102, "taa", 0.8) > StopCodon(30, "taa", 0.7)

    def test_from_prediction(self) -> None:
        """Raw predictions are converted to true-stop confidence."""
        stop = StopCodon.from_prediction(30, "ATG", "other", 0.75)
        assert stop.confidence == pytest.approx(0.25)


# =============================================================================
# StopCodonIndex Tests
# =============================================================================


@pytest.fixture
def three_stops() -> StopCodonIndex:
    """Single-frame index with stops at 30, 69 and 102."""
    index = StopCodonIndex()
    index.add_stop(30, "ATG", "other", 0.75)
    index.add_stop(69, "tag", "stop", 0.36)
    index.add_stop(102, "TAA", "other", 0.2)
    return index


class TestStopCodonIndex:
    """Tests for single-frame ORF lookup."""

    def test_find_with_predecessor(self, three_stops: StopCodonIndex) -> None:
        """A query inside the last ORF finds stop 102 with length 30."""
        hit = three_stops.find_enclosing_orf(72)
        assert hit is not None
        assert hit.stop.position == 102
        assert hit.stop.codon == "taa"
        assert hit.stop.confidence == pytest.approx(0.8)
        assert hit.length == 30
        assert hit.preceding.position == 69
        assert three_stops.orf_length == 30
        assert three_stops.orf_stop is hit.stop

    def test_find_first_orf(self, three_stops: StopCodonIndex) -> None:
        """The first ORF runs to the contig start."""
        hit = three_stops.find_enclosing_orf(21)
        assert hit.stop.position == 30
        assert hit.preceding is None
        assert hit.length == 27
        assert three_stops.orf_length == 27

    def test_find_exact_position(self, three_stops: StopCodonIndex) -> None:
        """A query at a stop position returns that stop."""
        assert three_stops.find_enclosing_orf(69).stop.position == 69

    def test_find_past_last_stop(self, three_stops: StopCodonIndex) -> None:
        """The contig tail belongs to no ORF and leaves the cache alone."""
        three_stops.find_enclosing_orf(72)
        assert three_stops.find_enclosing_orf(110) is None
        assert three_stops.orf_length == 30

    def test_origin(self, three_stops: StopCodonIndex) -> None:
        """The ORF origin is the first interior base."""
        assert three_stops.find_enclosing_orf(72).origin == 72

    def test_replace_same_position(self) -> None:
        """Adding a stop at a stored position replaces it."""
        index = StopCodonIndex()
        index.add_stop(30, "taa", "stop", 0.7)
        index.add_stop(30, "tag", "other", 0.9)
        assert len(index) == 1
        hit = index.find_enclosing_orf(30)
        assert hit.stop.codon == "tag"
        assert hit.stop.confidence == pytest.approx(0.1)

    def test_iteration(self, three_stops: StopCodonIndex) -> None:
        """Iteration yields ascending ORFs and refreshes the cache."""
        seen = []
        for hit in three_stops:
            seen.append((hit.stop.position, hit.length))
            assert three_stops.orf_length == hit.length
            assert three_stops.orf_stop is hit.stop
        assert seen == [(30, 27), (69, 36), (102, 30)]

    def test_iteration_restartable(self, three_stops: StopCodonIndex) -> None:
        """The index can be iterated more than once."""
        assert [h.stop.position for h in three_stops] == [h.stop.position for h in three_stops]

    def test_insertion_order_irrelevant(self) -> None:
        """Stops may be added in any order."""
        index = StopCodonIndex()
        for pos in (102, 30, 69):
            index.add_stop(pos, "taa", "stop", 0.5)
        assert [h.stop.position for h in index] == [30, 69, 102]
        assert 69 in index
        assert 70 not in index

    def test_empty(self) -> None:
        """An empty index encloses nothing."""
        index = StopCodonIndex()
        assert index.find_enclosing_orf(1) is None
        assert list(index) == []
        assert index.orf_length == 0


# =============================================================================
# FrameOrfIndex Tests
# =============================================================================


@pytest.fixture
def contig_index() -> FrameOrfIndex:
    """Three-frame index with stops in every frame."""
    index = FrameOrfIndex()
    index.add_stop(112, "tag", "stop", 0.1)
    index.add_stop(102, "tga", "stop", 0.2)
    index.add_stop(36, "tag", "other", 0.3)
    index.add_stop(333, "tga", "other", 0.4)
    index.add_stop(200, "tga", "stop", 0.5)
    index.add_stop(95, "taa", "other", 0.6)
    index.add_stop(38, "taa", "stop", 0.7)
    index.add_stop(40, "TGA", "other", 0.8)
    index.add_stop(61, "taa", "other", 0.9)
    return index


class TestFrameOrfIndex:
    """Tests for three-frame ORF lookup."""

    def test_frame_of(self) -> None:
        """Frames are position modulo 3."""
        assert FrameOrfIndex.frame_of(112) == 1
        assert FrameOrfIndex.frame_of(102) == 0
        assert FrameOrfIndex.frame_of(200) == 2

    def test_query_frame_one(self, contig_index: FrameOrfIndex) -> None:
        """100 lies in the frame-1 ORF between 61 and 112."""
        hit = contig_index.find_enclosing_orf(100)
        assert hit.stop.position == 112
        assert hit.stop.codon == "tag"
        assert hit.stop.confidence == pytest.approx(0.1)
        assert contig_index.orf_length == 48

    def test_query_complemented_confidence(self, contig_index: FrameOrfIndex) -> None:
        """Stop 333 was predicted other with 0.4, so its stop confidence is 0.6."""
        hit = contig_index.find_enclosing_orf(300)
        assert hit.stop.position == 333
        assert hit.stop.confidence == pytest.approx(0.6)

    def test_query_tail(self, contig_index: FrameOrfIndex) -> None:
        """301 is after the last frame-1 stop."""
        assert contig_index.find_enclosing_orf(301) is None

    def test_query_first_orf(self, contig_index: FrameOrfIndex) -> None:
        """Position 1 ends at the first frame-1 stop."""
        hit = contig_index.find_enclosing_orf(1)
        assert hit.stop.position == 40
        assert hit.stop.codon == "tga"
        assert contig_index.orf_length == 39

    def test_query_frame_zero(self, contig_index: FrameOrfIndex) -> None:
        """60 lies in the frame-0 ORF between 36 and 102."""
        hit = contig_index.find_enclosing_orf(60)
        assert hit.stop.position == 102
        assert contig_index.orf_length == 63

    def test_counts(self, contig_index: FrameOrfIndex) -> None:
        """All stops are stored across the frames."""
        assert contig_index.n_stops == 9
        assert [len(frame) for frame in contig_index.frames] == [3, 3, 3]

    def test_start_confidence(self) -> None:
        """Start confidences are stored as true-start probabilities."""
        index = FrameOrfIndex()
        index.add_start(4, "start", 0.7)
        index.add_start(10, "other", 0.6)
        assert index.get_start_confidence(4) == pytest.approx(0.7)
        assert index.get_start_confidence(10) == pytest.approx(0.4)
        assert index.get_start_confidence(13) == 0.0
        assert index.n_starts == 2


# =============================================================================
# Prediction File Tests
# =============================================================================


class TestReadPredictionFile:
    """Tests for read_prediction_file."""

    def test_read(self, stops_table: Path) -> None:
        """Starts and stops are routed by codon."""
        contigs = read_prediction_file(stops_table)
        assert list(contigs) == ["contig1"]
        index = contigs["contig1"]
        assert index.n_stops == 2
        assert index.n_starts == 3
        assert index.get_start_confidence(22) == pytest.approx(0.95)
        hit = index.find_enclosing_orf(22)
        assert hit.stop.position == 28
        assert hit.length == 9

    def test_extra_columns(self) -> None:
        """Columns are found by name in any order."""
        handle = io.StringIO(
            "confidence\tid\tpredicted\tcodon\tlocation\n"
            "0.9\tx\tstop\tTAA\tchrA;16\n"
            "0.7\ty\tstart\tATG\tchrA;4\n"
        )
        index = read_prediction_file(handle)["chrA"]
        assert index.find_enclosing_orf(4).stop.codon == "taa"
        assert index.get_start_confidence(4) == pytest.approx(0.7)

    def test_missing_column(self) -> None:
        """A table without a confidence column is rejected."""
        handle = io.StringIO("location\tcodon\tpredicted\nchrA;16\ttaa\tstop\n")
        with pytest.raises(PredictionFormatError, match="confidence"):
            read_prediction_file(handle)

    def test_bad_location(self) -> None:
        """A location without a delimiter is rejected."""
        handle = io.StringIO(
            "location\tcodon\tpredicted\tconfidence\nchrA:16\ttaa\tstop\t0.9\n"
        )
        with pytest.raises(PredictionFormatError):
            read_prediction_file(handle)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_prediction_file(tmp_path / "none.stops.tbl")
