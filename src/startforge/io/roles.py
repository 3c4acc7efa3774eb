"""Functional roles: splitting assignments and mapping names to IDs.

A functional assignment such as ``"Thioredoxin reductase (EC 1.8.1.9) /
Glutaredoxin"`` describes one or more roles. Roles can be reported by name
or, given a role map file, by a short role ID.

Role map files are tab-separated with the role ID in the first column and
the role name in the second; blank lines and ``#`` comments are ignored.

Example:
    >>> from startforge.io.roles import RoleMap, roles_of_function
    >>> roles_of_function("Alpha subunit / Beta subunit # putative")
    ['Alpha subunit', 'Beta subunit']
    >>> role_map = RoleMap.load("roles.tbl")
    >>> role_map.get_by_name("thioredoxin reductase")
    'ThioRedu'
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

# Comment markers end the role text of a functional assignment
_COMMENT = re.compile(r"\s*[#!].*$")

# Separators between roles of a multi-role assignment
_ROLE_SEPARATOR = re.compile(r"\s+[/@]\s+|\s*;\s+")

# EC and TC numbers are ignored when matching role names
_EC_NUMBER = re.compile(r"\s*\((?:EC|TC)\s+[^)]*\)")
_NON_WORD = re.compile(r"[^a-z0-9]+")


def roles_of_function(function: str | None) -> list[str]:
    """Split a functional assignment into its role names.

    Comments (text after ``#`` or ``!``) are dropped; roles are separated
    by `` / ``, `` @ `` or ``; ``.

    Args:
        function: Functional assignment string (may be None).

    Returns:
        Role names in order of appearance.
    """
    if not function:
        return []

    text = _COMMENT.sub("", function)
    return [role.strip() for role in _ROLE_SEPARATOR.split(text) if role.strip()]


def normalize_role(name: str) -> str:
    """Normalize a role name for matching.

    Case, punctuation, whitespace runs and EC/TC numbers are ignored.
    """
    text = _EC_NUMBER.sub("", name).lower()
    return _NON_WORD.sub(" ", text).strip()


class RoleMap:
    """Mapping between role names and role IDs.

    Attributes:
        path: Source file, if loaded from disk.
    """

    def __init__(self) -> None:
        self.path: Path | None = None
        self._ids_by_name: dict[str, str] = {}
        self._names_by_id: dict[str, str] = {}

    def add(self, role_id: str, name: str) -> None:
        """Register a role."""
        self._ids_by_name[normalize_role(name)] = role_id
        self._names_by_id[role_id] = name

    @classmethod
    def load(cls, path: Path | str) -> RoleMap:
        """Load a role map file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If a line has fewer than two columns.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Role map file not found: {path}")

        role_map = cls()
        role_map.path = path
        with open(path) as f:
            for line_number, line in enumerate(f, start=1):
                line = line.rstrip("\r\n")
                if not line.strip() or line.startswith("#"):
                    continue
                parts = line.split("\t")
                if len(parts) < 2:
                    raise ValueError(
                        f"{path.name} line {line_number}: expected role ID and name"
                    )
                role_map.add(parts[0].strip(), parts[1].strip())

        logger.info(f"Loaded {len(role_map)} roles from {path}")
        return role_map

    def get_by_name(self, name: str) -> str | None:
        """Role ID for a role name, or None if unknown."""
        return self._ids_by_name.get(normalize_role(name))

    def get_name(self, role_id: str) -> str | None:
        """Role name for a role ID, or None if unknown."""
        return self._names_by_id.get(role_id)

    def __len__(self) -> int:
        return len(self._names_by_id)

    def __contains__(self, role_id: object) -> bool:
        return role_id in self._names_by_id
