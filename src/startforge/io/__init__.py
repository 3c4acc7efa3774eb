"""Input/output handlers for StartForge.

This module provides readers and writers for the files of the
start-calling workflow:

- FASTA: contig sequences (pyfaidx)
- GFF3: reference annotations
- Tabular: start/stop predictions and scored candidates
- Role maps: role names to role IDs
- Balanced output: class-balanced training rows

Example:
    >>> from startforge.io import Genome, TabularReader
    >>> genome = Genome.load("genome.fa", "genome.gff3")
    >>> with TabularReader("genome.stops.tbl") as reader:
    ...     print(reader.header)
"""

from startforge.io.balanced import BalancedWriter
from startforge.io.fasta import GenomeAccessor
from startforge.io.genome import Contig, Genome, GenomeDataError, GenomeDirectory
from startforge.io.gff import AnnotatedFeature, GFF3Parser
from startforge.io.roles import RoleMap, roles_of_function
from startforge.io.tabular import TabularLine, TabularReader

__all__: list[str] = [
    "AnnotatedFeature",
    "BalancedWriter",
    "Contig",
    "GFF3Parser",
    "Genome",
    "GenomeAccessor",
    "GenomeDataError",
    "GenomeDirectory",
    "RoleMap",
    "TabularLine",
    "TabularReader",
    "roles_of_function",
]
