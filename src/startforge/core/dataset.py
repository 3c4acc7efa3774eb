"""Feature tables for training, evaluating and applying the start classifier.

Three tables are produced from scanned start candidates:

- training: every candidate at an annotated start is labeled ``start``;
  a random sample of the remaining candidates of each genome (at most
  ``max_false_starts``) is labeled ``other``. The label is the first
  column, named ``frame``.
- test: every candidate of one genome, followed by ``expect`` (``start``
  or ``other``) and ``roles`` columns from the reference annotation.
- predict: every candidate of a genome, unlabeled.

Contigs without start/stop predictions are skipped.

Example:
    >>> from startforge.core.dataset import write_predict_table
    >>> from startforge.core.orfs import read_prediction_file
    >>> with open("starts.tbl", "w") as out:
    ...     write_predict_table(genome, read_prediction_file("g.stops.tbl"), out)
"""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING, Iterator

import numpy as np

from startforge.core.orfs import read_prediction_file
from startforge.core.roles import build_start_role_indexes
from startforge.core.starts import FeatureExtractor, StartCandidate, feature_header
from startforge.io.balanced import BalancedWriter
from startforge.utils.logging import ProgressLogger

if TYPE_CHECKING:
    from startforge.core.orfs import FrameOrfIndex
    from startforge.io.genome import Genome, GenomeDirectory
    from startforge.io.roles import RoleMap

logger = logging.getLogger(__name__)

LABEL_COLUMN = "frame"
EXPECT_COLUMN = "expect"
ROLES_COLUMN = "roles"

LABEL_START = "start"
LABEL_OTHER = "other"


def iter_genome_candidates(
    genome: Genome,
    orf_indexes: dict[str, FrameOrfIndex],
) -> Iterator[StartCandidate]:
    """Scan every contig of a genome for start candidates.

    Args:
        genome: Genome whose contigs are scanned.
        orf_indexes: ORF lookup per contig.

    Yields:
        StartCandidate records, contig by contig in genome order.
    """
    contig_ids = set(genome.contig_ids)
    for contig_id in orf_indexes:
        if contig_id not in contig_ids:
            logger.warning(
                f"Skipping predictions for contig {contig_id}: not in genome {genome.genome_id}"
            )

    progress = ProgressLogger(
        logger, total=len(genome.contigs), interval=100, description=f"{genome.genome_id} contigs"
    )
    for contig in genome.contigs:
        orf_index = orf_indexes.get(contig.contig_id)
        if orf_index is None:
            logger.info(
                f"Skipping contig {contig.contig_id} in genome {genome.genome_id}: no stops"
            )
        else:
            logger.debug(f"Scanning contig {contig.contig_id} ({len(contig):,} bp)")
            yield from FeatureExtractor(contig.contig_id, contig.sequence, orf_index)
        progress.update()


# =============================================================================
# Training Table
# =============================================================================


class TrainingSetBuilder:
    """Write a labeled training table across many genomes.

    True starts are written as soon as they are found. False starts of a
    genome are collected and a random sample of at most
    ``max_false_starts`` is written after the genome is scanned.

    Attributes:
        writer: Balanced output for the labeled rows.
        max_false_starts: Per-genome limit on ``other`` rows.
        strand: Strand of the annotated features counted as true starts.
        rng: Random generator for sampling false starts.
    """

    def __init__(
        self,
        writer: BalancedWriter,
        max_false_starts: int = 6000,
        strand: str = "+",
        rng: np.random.Generator | None = None,
    ) -> None:
        self.writer = writer
        self.max_false_starts = max_false_starts
        self.strand = strand
        self.rng = rng if rng is not None else writer.rng
        self.n_true = 0
        self.n_false = 0

    def write_header(self) -> None:
        """Write the table header."""
        self.writer.write_immediate(LABEL_COLUMN, "\t".join(feature_header()))

    def add_genome(self, genome: Genome, orf_indexes: dict[str, FrameOrfIndex]) -> tuple[int, int]:
        """Scan one genome and write its rows.

        Returns:
            Numbers of true starts and sampled false starts written.
        """
        starts = build_start_role_indexes(genome, strand=self.strand)
        others: list[StartCandidate] = []
        n_true = 0

        for candidate in iter_genome_candidates(genome, orf_indexes):
            index = starts.get(candidate.contig_id)
            if index is not None and index.is_start(candidate.position):
                self.writer.write(LABEL_START, candidate.to_row())
                n_true += 1
            else:
                others.append(candidate)

        n_false = min(len(others), self.max_false_starts)
        logger.debug(f"Sampling {n_false} of {len(others)} false starts from {genome.genome_id}")
        if n_false:
            for i in self.rng.choice(len(others), size=n_false, replace=False):
                self.writer.write(LABEL_OTHER, others[i].to_row())

        self.n_true += n_true
        self.n_false += n_false
        return n_true, n_false

    def build(self, directory: GenomeDirectory) -> dict[str, int]:
        """Write the training table for every genome of a directory.

        Returns:
            Rows written per label after balancing.
        """
        self.write_header()
        for n, genome_id in enumerate(directory.genome_ids, start=1):
            genome = directory.load(genome_id)
            logger.info(f"Processing genome #{n} {genome_id}")
            orf_indexes = read_prediction_file(directory.stops_file(genome_id))
            n_true, n_false = self.add_genome(genome, orf_indexes)
            logger.info(f"Genome {genome_id}: {n_true} true starts, {n_false} false starts")

        return self.writer.close()


# =============================================================================
# Test and Predict Tables
# =============================================================================


def write_test_table(
    genome: Genome,
    orf_indexes: dict[str, FrameOrfIndex],
    handle: IO[str],
    role_map: RoleMap | None = None,
    strand: str = "+",
) -> int:
    """Write a feature table with expected classes and roles.

    Args:
        genome: Genome with reference annotation.
        orf_indexes: ORF lookup per contig.
        handle: Output stream.
        role_map: Optional role map; known roles are written as IDs.
        strand: Strand of the annotated features counted as true starts.

    Returns:
        Number of candidates written.
    """
    starts = build_start_role_indexes(genome, strand=strand, role_map=role_map)
    handle.write("\t".join([*feature_header(), EXPECT_COLUMN, ROLES_COLUMN]) + "\n")

    n_rows = 0
    for candidate in iter_genome_candidates(genome, orf_indexes):
        index = starts.get(candidate.contig_id)
        roles = index.get_roles(candidate.position) if index is not None else None
        expect = LABEL_OTHER if roles is None else LABEL_START
        handle.write(f"{candidate.to_row()}\t{expect}\t{roles or ''}\n")
        n_rows += 1

    logger.info(f"Wrote {n_rows:,} test candidates for {genome.genome_id}")
    return n_rows


def write_predict_table(
    genome: Genome,
    orf_indexes: dict[str, FrameOrfIndex],
    handle: IO[str],
) -> int:
    """Write an unlabeled feature table.

    Returns:
        Number of candidates written.
    """
    handle.write("\t".join(feature_header()) + "\n")

    n_rows = 0
    for candidate in iter_genome_candidates(genome, orf_indexes):
        handle.write(candidate.to_row() + "\n")
        n_rows += 1

    logger.info(f"Wrote {n_rows:,} candidates for {genome.genome_id}")
    return n_rows
