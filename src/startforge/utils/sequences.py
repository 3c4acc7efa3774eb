"""Sequence composition and codon utilities.

This module holds the fixed lookup tables and pure sequence functions used
when describing a start-codon candidate:

- Genetic code 11 (bacterial, archaeal and plant plastid)
- Start and stop codon classification
- GC content over an ORF interior
- Amino acid composition between a start and its stop

All positions are 1-based contig coordinates and sequences are expected in
lower case, matching the way the contig scanner normalizes them.

Example:
    >>> from startforge.utils.sequences import AA_LIST, aa_content, gc_content
    >>> gc_content("atgcgcgcgtaa", 10, 9)
    0.7777777777777778
    >>> aa_content("atgaaataa", 1, 7)[AA_LIST.index("M")]
    50.0
"""

from __future__ import annotations

import numpy as np

# =============================================================================
# Constants
# =============================================================================

# Genetic code 11 (NCBI translation table 11)
GENETIC_CODE_11 = {
    "aaa": "K", "aac": "N", "aag": "K", "aat": "N",
    "aca": "T", "acc": "T", "acg": "T", "act": "T",
    "aga": "R", "agc": "S", "agg": "R", "agt": "S",
    "ata": "I", "atc": "I", "atg": "M", "att": "I",
    "caa": "Q", "cac": "H", "cag": "Q", "cat": "H",
    "cca": "P", "ccc": "P", "ccg": "P", "cct": "P",
    "cga": "R", "cgc": "R", "cgg": "R", "cgt": "R",
    "cta": "L", "ctc": "L", "ctg": "L", "ctt": "L",
    "gaa": "E", "gac": "D", "gag": "E", "gat": "D",
    "gca": "A", "gcc": "A", "gcg": "A", "gct": "A",
    "gga": "G", "ggc": "G", "ggg": "G", "ggt": "G",
    "gta": "V", "gtc": "V", "gtg": "V", "gtt": "V",
    "taa": "*", "tac": "Y", "tag": "*", "tat": "Y",
    "tca": "S", "tcc": "S", "tcg": "S", "tct": "S",
    "tga": "*", "tgc": "C", "tgg": "W", "tgt": "C",
    "tta": "L", "ttc": "F", "ttg": "L", "ttt": "F",
}

# Amino acid symbols in profile order (X is reserved for ambiguity)
AA_LIST = "ACDEFGHIKLMNPQRSTVWXY"
AA_COUNT = len(AA_LIST)
_AA_INDEX = {aa: i for i, aa in enumerate(AA_LIST)}

# Start codons in one-hot order
START_CODONS = ("atg", "gtg", "ttg")

# Stop codons in one-hot order
STOP_CODONS = ("taa", "tag", "tga")


# =============================================================================
# Codon Classification
# =============================================================================


def start_index(codon: str) -> int:
    """Return the one-hot index of a start codon, or -1 if it is not one.

    Args:
        codon: Codon text (lower case).

    Returns:
        Index into START_CODONS, or -1.
    """
    try:
        return START_CODONS.index(codon)
    except ValueError:
        return -1


def stop_index(codon: str) -> int:
    """Return the one-hot index of a stop codon, or -1 if it is not one."""
    try:
        return STOP_CODONS.index(codon)
    except ValueError:
        return -1


def check_start(sequence: str, position: int) -> int:
    """Classify the codon beginning at a 1-based position.

    Args:
        sequence: Contig sequence (lower case).
        position: Position (1-based) of the first base.

    Returns:
        Index into START_CODONS, or -1 if no start codon begins there.
    """
    return start_index(sequence[position - 1 : position + 2])


def one_hot(index: int, width: int = 3) -> np.ndarray:
    """Build a one-hot vector; an index of -1 gives all zeros."""
    vector = np.zeros(width, dtype=np.float64)
    if 0 <= index < width:
        vector[index] = 1.0
    return vector


# =============================================================================
# Composition
# =============================================================================


def gc_content(sequence: str, end_position: int, length: int) -> float:
    """Fraction of G/C bases in the region ending just before a position.

    The region covers the ``length`` bases immediately preceding
    ``end_position``, i.e. the interior of an ORF whose terminal stop
    begins at ``end_position``.

    Args:
        sequence: Contig sequence (lower case).
        end_position: Position (1-based) just past the end of the region.
        length: Number of bases in the region.

    Returns:
        GC fraction (0.0 to 1.0). An empty region gives 0.0.
    """
    if length <= 0:
        return 0.0

    end = end_position - 1
    region = sequence[end - length : end]
    gc_count = region.count("g") + region.count("c")
    return gc_count / length


def aa_content(sequence: str, start_position: int, end_position: int) -> np.ndarray:
    """Amino acid profile of a region, as percentages of the codon count.

    Codons are read from ``start_position`` up to (not including)
    ``end_position`` and translated with genetic code 11. Codons that do
    not translate (ambiguity characters) count toward the total but not
    toward any symbol.

    Args:
        sequence: Contig sequence (lower case).
        start_position: Position (1-based) of the first codon.
        end_position: Position (1-based) just past the region.

    Returns:
        Array of AA_COUNT percentages in AA_LIST order. An empty region
        gives all zeros.
    """
    counts = np.zeros(AA_COUNT, dtype=np.float64)
    total = 0

    for i in range(start_position - 1, end_position - 1, 3):
        aa = GENETIC_CODE_11.get(sequence[i : i + 3])
        if aa is not None:
            idx = _AA_INDEX.get(aa)
            if idx is not None:
                counts[idx] += 1
        total += 1

    if total == 0:
        return counts

    return counts * 100.0 / total
