"""Pytest configuration and shared fixtures for StartForge tests.

This module contains fixtures that are shared across multiple test modules.
Fixtures are organized by category:

- Sequence fixtures: Hand-built contigs with known start codons
- File fixtures: FASTA, GFF3, prediction and role tables in tmp_path
- Synthetic data fixtures: Random sequences for property tests

The hand-built contig ``contig1`` (60 bp) is laid out as::

    1   ccc   4  atg   7  gcc   10 gtg   13 ccc   16 taa
    19  ccc   22 ttg   25 ccc   28 tag   31-60 c * 30

Its start codons are at 4, 10 and 22; the predicted stops at 16 and 28
are both in frame 1. ``contig2`` has no predictions at all.
"""

from pathlib import Path

import numpy as np
import pytest

CONTIG1 = "cccatggccgtgccctaacccttgccctag" + "c" * 30
CONTIG2 = "atgaaatag" + "c" * 21

PREDICTION_HEADER = "location\tcodon\tpredicted\tconfidence"
PREDICTION_ROWS = [
    "contig1;4\tatg\tstart\t0.7",
    "contig1;10\tgtg\tother\t0.6",
    "contig1;16\ttaa\tstop\t0.9",
    "contig1;22\tttg\tstart\t0.95",
    "contig1;28\ttag\tstop\t0.8",
]

GFF_LINES = [
    "##gff-version 3",
    "contig1\ttest\tgene\t4\t18\t.\t+\t.\tID=gene1",
    "contig1\ttest\tCDS\t4\t18\t.\t+\t0\tID=cds1;Parent=gene1;product=Alpha subunit / Beta subunit",
    "contig1\ttest\tCDS\t22\t30\t.\t+\t0\tID=cds2;product=Gamma protein (EC 1.2.3.4)",
    "contig1\ttest\tCDS\t31\t45\t.\t-\t0\tID=cds3;product=Delta protein",
]


def write_fasta(path: Path, sequences: dict[str, str], width: int = 80) -> Path:
    """Write sequences to a FASTA file with fixed line width."""
    with open(path, "w") as f:
        for seqid, seq in sequences.items():
            f.write(f">{seqid}\n")
            for i in range(0, len(seq), width):
                f.write(seq[i : i + width] + "\n")
    return path


def write_lines(path: Path, lines: list[str]) -> Path:
    """Write lines to a text file."""
    path.write_text("\n".join(lines) + "\n")
    return path


# =============================================================================
# Sequence Fixtures
# =============================================================================


@pytest.fixture
def contig1_sequence() -> str:
    """The hand-built 60 bp contig."""
    return CONTIG1


@pytest.fixture
def random_sequence() -> str:
    """A reproducible random 2 kb sequence."""
    rng = np.random.default_rng(42)
    return "".join(rng.choice(list("acgt"), 2000))


# =============================================================================
# File Fixtures
# =============================================================================


@pytest.fixture
def genome_fasta(tmp_path: Path) -> Path:
    """FASTA with contig1 and contig2 (upper case, 25 bp lines)."""
    return write_fasta(
        tmp_path / "genome.fa",
        {"contig1": CONTIG1.upper(), "contig2": CONTIG2.upper()},
        width=25,
    )


@pytest.fixture
def genome_gff(tmp_path: Path) -> Path:
    """GFF3 annotation of contig1."""
    return write_lines(tmp_path / "genome.gff3", GFF_LINES)


@pytest.fixture
def stops_table(tmp_path: Path) -> Path:
    """Start/stop prediction table for contig1."""
    return write_lines(tmp_path / "genome.stops.tbl", [PREDICTION_HEADER, *PREDICTION_ROWS])


@pytest.fixture
def scored_starts(tmp_path: Path) -> Path:
    """Classifier output for contig1 and contig2 candidates.

    - 4 and 10 share the ORF ending at 16; 10 scores higher
    - 22 is alone in the ORF ending at 28
    - 25 is predicted "other"
    - contig2 has no predictions; 50 lies after the last frame-2 stop
    """
    return write_lines(
        tmp_path / "scored.tbl",
        [
            "location\tpredicted\tconfidence",
            "contig1;4\tstart\t0.8",
            "contig1;10\tstart\t0.9",
            "contig1;22\tstart\t0.7",
            "contig1;25\tother\t0.99",
            "contig2;4\tstart\t0.9",
            "contig1;50\tstart\t0.9",
        ],
    )


@pytest.fixture
def role_map_file(tmp_path: Path) -> Path:
    """Role map with IDs for two of the annotated roles."""
    return write_lines(
        tmp_path / "roles.tbl",
        [
            "# role map",
            "AlphSubu\tAlpha subunit",
            "GammProt\tGamma protein",
        ],
    )


@pytest.fixture
def genome_dir(tmp_path: Path) -> Path:
    """Training directory holding one genome (g1) in the standard layout."""
    directory = tmp_path / "genomes"
    directory.mkdir()
    write_fasta(directory / "g1.fna", {"contig1": CONTIG1, "contig2": CONTIG2})
    write_lines(directory / "g1.gff", GFF_LINES)
    write_lines(directory / "g1.stops.tbl", [PREDICTION_HEADER, *PREDICTION_ROWS])
    return directory


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """YAML configuration overriding a few defaults."""
    return write_lines(
        tmp_path / "startforge.yaml",
        [
            "training:",
            "  max_false_starts: 1",
            "  seed: 7",
            "finish:",
            "  output_format: compact",
        ],
    )
