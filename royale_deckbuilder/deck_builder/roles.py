"""Role classification for cards.

A role is a coarse tactical category used to judge deck composition. Cards are
looked up by name in a static table (role -> card names); a card listed under
several roles takes the highest-priority one and unlisted cards are units.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Mapping

from ..logging_util import get_logger
from ..settings import ROLE_PRIORITY
from .cards import clean_name

LOGGER = get_logger(__name__)

__all__ = ["Role", "RoleClassifier"]


class Role(str, Enum):
    """Card roles."""

    SPELL = "spell"
    BUILDING = "building"
    WINCON = "wincon"
    UNIT = "unit"

    @classmethod
    def from_value(cls, value: object) -> "Role | None":
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        token = value.strip().casefold()
        for role in cls:
            if role.value == token:
                return role
        return None

    @property
    def priority(self) -> int:
        return ROLE_PRIORITY.get(self.value, 0)


@dataclass(frozen=True)
class RoleClassifier:
    """Immutable card name -> role lookup."""

    roles: Dict[str, Role] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, table: Mapping[str, Iterable[object]] | None) -> "RoleClassifier":
        """Build a classifier from ``{role: [card names]}``.

        Unknown role keys are ignored. When a card appears under several roles
        the priority order is wincon > building > spell > unit.
        """
        resolved: Dict[str, Role] = {}
        if not table:
            return cls()
        for role_key, names in table.items():
            role = Role.from_value(role_key)
            if role is None:
                LOGGER.warning("role_table_unknown_role role=%s", role_key)
                continue
            if isinstance(names, (str, bytes)) or not isinstance(names, Iterable):
                continue
            for raw in names:
                name = clean_name(raw)
                if not name:
                    continue
                current = resolved.get(name)
                if current is None or role.priority > current.priority:
                    resolved[name] = role
        return cls(roles=resolved)

    def role_of(self, name: str) -> Role:
        return self.roles.get(name, Role.UNIT)

    def count_roles(self, deck: Iterable[str]) -> Dict[Role, int]:
        """Count roles over the unique cards of a deck (every role present, possibly 0)."""
        counts: Dict[Role, int] = {role: 0 for role in Role}
        seen: set[str] = set()
        for name in deck:
            if name in seen:
                continue
            seen.add(name)
            counts[self.role_of(name)] += 1
        return counts

    def __len__(self) -> int:
        return len(self.roles)

    def __contains__(self, name: object) -> bool:
        return name in self.roles
