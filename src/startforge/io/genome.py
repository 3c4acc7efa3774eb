"""Genome loading: contig sequences plus annotated features.

A Genome pairs the contigs of a FASTA file with the coding features of a
GFF3 annotation. A GenomeDirectory discovers the genomes of a training
directory, where every genome ``<id>`` is stored as

    <id>.fa | <id>.fasta | <id>.fna     contig sequences
    <id>.gff3 | <id>.gff                reference annotation
    <id>.stops.tbl                      start/stop predictions

Example:
    >>> from startforge.io.genome import GenomeDirectory
    >>> directory = GenomeDirectory("training/")
    >>> for genome in directory:
    ...     print(genome.genome_id, len(genome.contigs))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator

import attrs

from startforge.io.fasta import GenomeAccessor
from startforge.io.gff import DEFAULT_FEATURE_TYPES, AnnotatedFeature, GFF3Parser

logger = logging.getLogger(__name__)

FASTA_SUFFIXES = (".fa", ".fasta", ".fna")
GFF_SUFFIXES = (".gff3", ".gff")
STOPS_SUFFIX = ".stops.tbl"


class GenomeDataError(ValueError):
    """Raised when genome input files are missing or inconsistent."""


@attrs.frozen
class Contig:
    """A contig sequence.

    Attributes:
        contig_id: Contig identifier.
        sequence: DNA sequence (lower case).
    """

    contig_id: str
    sequence: str = attrs.field(repr=False)

    def __len__(self) -> int:
        return len(self.sequence)


@attrs.define
class Genome:
    """Contigs and annotated features of one genome.

    Attributes:
        genome_id: Genome identifier.
        contigs: Contigs in FASTA order.
        features: Annotated features in GFF3 order.
    """

    genome_id: str
    contigs: list[Contig] = attrs.Factory(list)
    features: list[AnnotatedFeature] = attrs.Factory(list)

    @classmethod
    def load(
        cls,
        fasta_path: Path | str,
        gff_path: Path | str | None = None,
        genome_id: str | None = None,
        feature_types: Iterable[str] = DEFAULT_FEATURE_TYPES,
    ) -> Genome:
        """Load a genome from FASTA and (optionally) GFF3 files.

        Args:
            fasta_path: Contig FASTA file.
            gff_path: GFF3 annotation; None gives a genome without features.
            genome_id: Identifier; defaults to the FASTA file stem.
            feature_types: GFF3 types treated as coding features.

        Returns:
            Loaded Genome.

        Raises:
            FileNotFoundError: If an input file doesn't exist.
        """
        fasta_path = Path(fasta_path)
        if genome_id is None:
            genome_id = fasta_path.stem

        with GenomeAccessor(fasta_path) as accessor:
            contigs = [Contig(seqid, sequence) for seqid, sequence in accessor.iter_contigs()]

        features: list[AnnotatedFeature] = []
        if gff_path is not None:
            features = list(GFF3Parser(gff_path, feature_types).features)
            contig_ids = {contig.contig_id for contig in contigs}
            orphans = {f.seqid for f in features if f.seqid not in contig_ids}
            if orphans:
                logger.warning(
                    f"Genome {genome_id}: features on {len(orphans)} contig(s) "
                    f"missing from {fasta_path.name} will be ignored"
                )
                features = [f for f in features if f.seqid in contig_ids]

        logger.info(
            f"Loaded genome {genome_id}: {len(contigs)} contigs, {len(features)} features"
        )
        return cls(genome_id=genome_id, contigs=contigs, features=features)

    def get_contig(self, contig_id: str) -> Contig | None:
        """Find a contig by ID."""
        for contig in self.contigs:
            if contig.contig_id == contig_id:
                return contig
        return None

    @property
    def contig_ids(self) -> list[str]:
        """Contig IDs in order."""
        return [contig.contig_id for contig in self.contigs]


def _find_with_suffix(directory: Path, stem: str, suffixes: tuple[str, ...]) -> Path | None:
    for suffix in suffixes:
        candidate = directory / f"{stem}{suffix}"
        if candidate.exists():
            return candidate
    return None


class GenomeDirectory:
    """Genomes of a training directory, loaded one at a time.

    Attributes:
        path: Directory path.
        genome_ids: IDs of the genomes found, sorted.
        feature_types: GFF3 types treated as coding features.
    """

    def __init__(
        self,
        path: Path | str,
        feature_types: Iterable[str] = DEFAULT_FEATURE_TYPES,
    ) -> None:
        """Scan a directory for genomes.

        Raises:
            FileNotFoundError: If the directory doesn't exist.
            GenomeDataError: If a genome lacks its annotation or
                prediction file, or the directory holds no genomes.
        """
        self.path = Path(path)
        if not self.path.is_dir():
            raise FileNotFoundError(f"{self.path} is not a valid directory")

        self.feature_types = frozenset(feature_types)
        stems = {
            entry.name[: -len(suffix)]
            for entry in self.path.iterdir()
            for suffix in FASTA_SUFFIXES
            if entry.is_file() and entry.name.endswith(suffix)
        }
        if not stems:
            raise GenomeDataError(f"No FASTA files found in {self.path}")

        for stem in stems:
            if _find_with_suffix(self.path, stem, GFF_SUFFIXES) is None:
                raise GenomeDataError(f"Genome {stem} has no GFF3 annotation in {self.path}")
            if not self.stops_file(stem).exists():
                raise GenomeDataError(f"Genome {stem} has no {STOPS_SUFFIX} file in {self.path}")

        self.genome_ids = sorted(stems)
        logger.info(f"Found {len(self.genome_ids)} genomes in {self.path}")

    def stops_file(self, genome_id: str) -> Path:
        """Path of a genome's start/stop prediction table."""
        return self.path / f"{genome_id}{STOPS_SUFFIX}"

    def load(self, genome_id: str) -> Genome:
        """Load one genome of the directory."""
        fasta = _find_with_suffix(self.path, genome_id, FASTA_SUFFIXES)
        gff = _find_with_suffix(self.path, genome_id, GFF_SUFFIXES)
        if fasta is None or gff is None:
            raise GenomeDataError(f"Genome {genome_id} not found in {self.path}")
        return Genome.load(fasta, gff, genome_id=genome_id, feature_types=self.feature_types)

    def __iter__(self) -> Iterator[Genome]:
        for genome_id in self.genome_ids:
            yield self.load(genome_id)

    def __len__(self) -> int:
        return len(self.genome_ids)
