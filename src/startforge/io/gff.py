"""GFF3 feature annotation reading.

Reference annotations supply the ground truth for start calling: every
coding feature marks a true start at its strand-aware first base and
carries a functional assignment.

Features:
    - Parse GFF3 lines into AnnotatedFeature records
    - Multi-line features (same ID) are merged into one span
    - Functional assignment taken from product/function/Name attributes
    - Streaming iteration in file order

Coordinates follow GFF3: 1-based, inclusive on both ends.

Example:
    >>> from startforge.io.gff import GFF3Parser
    >>> parser = GFF3Parser("annotations.gff3")
    >>> for feature in parser.iter_features():
    ...     print(feature.seqid, feature.begin, feature.function)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Literal

import attrs

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# GFF3 column indices
COL_SEQID = 0
COL_SOURCE = 1
COL_TYPE = 2
COL_START = 3
COL_END = 4
COL_SCORE = 5
COL_STRAND = 6
COL_PHASE = 7
COL_ATTRIBUTES = 8

# Feature types that mark translation starts
DEFAULT_FEATURE_TYPES = frozenset({"CDS"})

# Attributes searched, in order, for the functional assignment
FUNCTION_ATTRIBUTES = ("product", "function", "Name")

Strand = Literal["+", "-"]


# =============================================================================
# Data Models
# =============================================================================


@attrs.define(slots=True)
class AnnotatedFeature:
    """An annotated feature with its functional assignment.

    Attributes:
        feature_id: Feature identifier (ID attribute, or generated).
        seqid: Contig name.
        start: Leftmost base (1-based, inclusive).
        end: Rightmost base (1-based, inclusive).
        strand: Strand (+ or -).
        feature_type: GFF3 type column.
        function: Functional assignment string ("" if none).
        attributes: All GFF3 attributes.
    """

    feature_id: str
    seqid: str
    start: int
    end: int
    strand: str
    feature_type: str = "CDS"
    function: str = ""
    attributes: dict[str, str] = attrs.Factory(dict)

    @property
    def begin(self) -> int:
        """First base in the direction of transcription."""
        return self.start if self.strand == "+" else self.end

    @property
    def length(self) -> int:
        """Feature length in base pairs."""
        return self.end - self.start + 1


# =============================================================================
# Attribute Parsing
# =============================================================================


def parse_attributes(attr_string: str) -> dict[str, str]:
    """Parse GFF3 attribute string into dictionary.

    Args:
        attr_string: Semicolon-separated key=value pairs.

    Returns:
        Dictionary of attribute key-value pairs.
    """
    attributes: dict[str, str] = {}
    if not attr_string or attr_string == ".":
        return attributes

    for item in attr_string.split(";"):
        item = item.strip()
        if not item:
            continue

        if "=" in item:
            key, value = item.split("=", 1)
            # URL decode
            value = value.replace("%3B", ";").replace("%3D", "=").replace("%26", "&")
            value = value.replace("%2C", ",")
            attributes[key] = value

    return attributes


def function_of(attributes: dict[str, str]) -> str:
    """Functional assignment from a feature's attributes."""
    for key in FUNCTION_ATTRIBUTES:
        value = attributes.get(key)
        if value:
            return value
    return ""


# =============================================================================
# GFF3 Parser
# =============================================================================


class GFF3Parser:
    """Parse GFF3 annotations into AnnotatedFeature records.

    Attributes:
        path: Path to the GFF3 file.
        feature_types: GFF3 types that are loaded.

    Example:
        >>> parser = GFF3Parser("annotations.gff3", feature_types={"CDS"})
        >>> len(parser.features)
        4321
    """

    def __init__(
        self,
        gff_path: Path | str,
        feature_types: Iterable[str] = DEFAULT_FEATURE_TYPES,
    ) -> None:
        """Initialize the parser.

        Args:
            gff_path: Path to GFF3 file.
            feature_types: Feature types to load.

        Raises:
            FileNotFoundError: If file doesn't exist.
        """
        self.path = Path(gff_path)
        if not self.path.exists():
            raise FileNotFoundError(f"GFF3 file not found: {self.path}")

        self.feature_types = frozenset(feature_types)
        self._features: list[AnnotatedFeature] | None = None

    def _parse_line(self, line: str) -> dict[str, Any] | None:
        """Parse a single GFF3 line.

        Returns:
            Parsed feature dictionary or None for comments/empty/malformed.
        """
        line = line.strip()
        if not line or line.startswith("#"):
            return None

        parts = line.split("\t")
        if len(parts) < 9:
            logger.warning(f"Malformed GFF3 line (expected 9 columns): {line[:50]}...")
            return None

        try:
            return {
                "seqid": parts[COL_SEQID],
                "type": parts[COL_TYPE],
                "start": int(parts[COL_START]),
                "end": int(parts[COL_END]),
                "strand": parts[COL_STRAND] if parts[COL_STRAND] in ("+", "-") else "+",
                "attributes": parse_attributes(parts[COL_ATTRIBUTES]),
            }
        except (ValueError, IndexError) as e:
            logger.warning(f"Error parsing GFF3 line: {e}")
            return None

    def _build_features(self) -> list[AnnotatedFeature]:
        """Build features from the GFF3 file, merging rows that share an ID."""
        features: dict[str, AnnotatedFeature] = {}

        with open(self.path) as f:
            for line in f:
                if line.startswith("##FASTA"):
                    break

                parsed = self._parse_line(line)
                if parsed is None or parsed["type"] not in self.feature_types:
                    continue

                attributes = parsed["attributes"]
                feature_id = attributes.get("ID") or f"{parsed['type']}_{len(features) + 1}"

                existing = features.get(feature_id)
                if existing is not None and existing.seqid == parsed["seqid"]:
                    existing.start = min(existing.start, parsed["start"])
                    existing.end = max(existing.end, parsed["end"])
                    continue
                if existing is not None:
                    feature_id = f"{feature_id}_{len(features) + 1}"

                features[feature_id] = AnnotatedFeature(
                    feature_id=feature_id,
                    seqid=parsed["seqid"],
                    start=parsed["start"],
                    end=parsed["end"],
                    strand=parsed["strand"],
                    feature_type=parsed["type"],
                    function=function_of(attributes),
                    attributes=attributes,
                )

        logger.info(f"Parsed {len(features)} features from {self.path.name}")
        return list(features.values())

    @property
    def features(self) -> list[AnnotatedFeature]:
        """All loaded features in file order."""
        if self._features is None:
            self._features = self._build_features()
        return self._features

    def iter_features(self, seqid: str | None = None) -> Iterator[AnnotatedFeature]:
        """Iterate over features, optionally for one contig."""
        for feature in self.features:
            if seqid is None or feature.seqid == seqid:
                yield feature
