"""Contig location parsing utilities.

Prediction tables identify each codon with a single ``location`` field
holding the contig ID and the 1-based codon position separated by a
semicolon. This module parses and formats that field.

Coordinate conventions:
    - Prediction tables: 1-based, position of the first codon base
    - Feature tables: same format, written back unchanged
    - GFF3 files: 1-based inclusive (see startforge.io.gff)

Example:
    >>> from startforge.utils.locations import parse_location
    >>> loc = parse_location("NC_004347;237")
    >>> loc.contig_id
    'NC_004347'
    >>> loc.position
    237
    >>> str(loc)
    'NC_004347;237'
"""

from __future__ import annotations

from typing import NamedTuple

LOCATION_DELIMITER = ";"


class PredictionFormatError(ValueError):
    """Raised when a prediction table is corrupted.

    Covers missing required columns, location fields without a delimiter
    and non-numeric positions. These abort the run.
    """


class ContigPosition(NamedTuple):
    """A 1-based position on a named contig.

    Attributes:
        contig_id: Contig identifier.
        position: Position (1-based).
    """

    contig_id: str
    position: int

    def __str__(self) -> str:
        """Return the location in prediction-table format."""
        return format_location(self.contig_id, self.position)


def parse_location(location: str) -> ContigPosition:
    """Parse a ``contig;position`` location string.

    The contig ID is everything before the last delimiter, so contig IDs
    containing semicolons survive.

    Args:
        location: Location field from a prediction table.

    Returns:
        ContigPosition with the parsed values.

    Raises:
        PredictionFormatError: If the delimiter is missing or the position
            is not an integer.
    """
    contig_id, delim, position_str = location.strip().rpartition(LOCATION_DELIMITER)

    if not delim or not contig_id:
        raise PredictionFormatError(
            f"Invalid location '{location}'. Expected format: contig;position"
        )

    try:
        position = int(position_str)
    except ValueError as e:
        raise PredictionFormatError(
            f"Invalid position in location '{location}': {position_str!r}"
        ) from e

    return ContigPosition(contig_id, position)


def format_location(contig_id: str, position: int) -> str:
    """Format a contig ID and position as a location string.

    Example:
        >>> format_location("chr1", 42)
        'chr1;42'
    """
    return f"{contig_id}{LOCATION_DELIMITER}{position}"
