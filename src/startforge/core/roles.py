"""Ground-truth start positions and their functional roles.

For every contig, a StartRoleIndex maps the first base of each annotated
coding feature on one strand to the role(s) of that feature. Scanned start
candidates whose position appears in the index are true starts.

When several roles share a position (multi-role functions, or stacked
features) they are joined in encounter order with " / ". Nothing is
deduplicated.

Example:
    >>> from startforge.core.roles import build_start_role_indexes
    >>> indexes = build_start_role_indexes(genome, strand="+")
    >>> indexes["NC_004347"].get_roles(190)
    'Thioredoxin reductase'
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from startforge.io.roles import roles_of_function

if TYPE_CHECKING:
    from startforge.io.genome import Genome
    from startforge.io.gff import AnnotatedFeature
    from startforge.io.roles import RoleMap

logger = logging.getLogger(__name__)

ROLE_DELIMITER = " / "


class StartRoleIndex:
    """Map of start positions to role strings for one contig.

    Attributes:
        role_map: Optional role map translating names to role IDs.
    """

    def __init__(self, role_map: RoleMap | None = None) -> None:
        self.role_map = role_map
        self._roles: dict[int, str] = {}

    def role_string(self, role: str) -> str:
        """Representation of a role: its ID when the map knows it, else its name."""
        if self.role_map is not None:
            role_id = self.role_map.get_by_name(role)
            if role_id is not None:
                return role_id
        return role

    def add_feature(self, feature: AnnotatedFeature) -> None:
        """Record a feature's start position and roles.

        A feature without a function still marks its position as a start
        (with an empty role string).
        """
        position = feature.begin
        parts = []
        existing = self._roles.get(position)
        if existing:
            parts.append(existing)
        parts.extend(self.role_string(role) for role in roles_of_function(feature.function))
        self._roles[position] = ROLE_DELIMITER.join(parts)

    def get_roles(self, position: int) -> str | None:
        """Role string for a start position, or None if no feature starts there."""
        return self._roles.get(position)

    def is_start(self, position: int) -> bool:
        """Whether an annotated feature starts at a position."""
        return position in self._roles

    def __len__(self) -> int:
        return len(self._roles)


def build_start_role_indexes(
    genome: Genome,
    strand: str = "+",
    role_map: RoleMap | None = None,
) -> dict[str, StartRoleIndex]:
    """Build a StartRoleIndex for every contig of a genome.

    Args:
        genome: Genome with contigs and annotated features.
        strand: Only features on this strand are indexed.
        role_map: Optional role name to ID map.

    Returns:
        Dictionary mapping contig ID to its index. Every contig gets an
        index, even when it has no features.
    """
    indexes = {contig.contig_id: StartRoleIndex(role_map) for contig in genome.contigs}

    n_features = 0
    for feature in genome.features:
        if feature.strand != strand:
            continue
        index = indexes.get(feature.seqid)
        if index is None:
            index = StartRoleIndex(role_map)
            indexes[feature.seqid] = index
        index.add_feature(feature)
        n_features += 1

    logger.debug(f"Indexed {n_features} {strand} strand feature starts for {genome.genome_id}")
    return indexes
