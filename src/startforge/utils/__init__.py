"""Utility functions for startforge.

This module provides common utilities used across startforge:

- Contig location parsing (``contig;position``)
- Codon tables and sequence composition
- Logging configuration

Example:
    >>> from startforge.utils import parse_location
    >>> parse_location("chr1;1000").position
    1000
"""

from startforge.utils.locations import (
    ContigPosition,
    PredictionFormatError,
    format_location,
    parse_location,
)

__all__ = [
    "ContigPosition",
    "PredictionFormatError",
    "format_location",
    "parse_location",
]
