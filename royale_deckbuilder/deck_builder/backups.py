"""Backup (substitute card) compatibility graph.

Each original card maps to an ordered list of acceptable substitutes, best
first, each tagged with a star tier in 1..3. The original card is implicitly
its own substitute at the top tier and always outranks a real backup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Tuple

from ..settings import IDENTITY_RANK, MAX_STARS, MIN_STARS
from .cards import clean_name

__all__ = ["BackupOption", "CandidateInfo", "BackupGraph"]


@dataclass(frozen=True, slots=True)
class BackupOption:
    name: str
    stars: int


@dataclass(frozen=True, slots=True)
class CandidateInfo:
    """Compatibility of a candidate card for a slot.

    ``rank`` is the candidate's position in the original's backup list, or -1
    when the candidate is the original card itself.
    """

    stars: int
    rank: int

    @property
    def is_identity(self) -> bool:
        return self.rank == IDENTITY_RANK


IDENTITY = CandidateInfo(stars=MAX_STARS, rank=IDENTITY_RANK)


def _coerce_stars(value: object) -> int:
    if isinstance(value, bool):
        return MIN_STARS
    try:
        stars = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return MIN_STARS
    return max(MIN_STARS, min(MAX_STARS, stars))


def _get(source: object, key: str) -> object:
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


@dataclass(frozen=True)
class BackupGraph:
    """Immutable original card -> ordered backups lookup."""

    entries: Dict[str, Tuple[BackupOption, ...]] = field(default_factory=dict)

    @classmethod
    def from_entries(cls, table: Iterable[object] | None) -> "BackupGraph":
        """Build the graph from ``[{name, backups: [{name, stars}, ...]}, ...]``.

        The first entry for a card name wins; blank names are skipped and a
        backup repeated within one entry keeps its first (best) position.
        """
        entries: Dict[str, Tuple[BackupOption, ...]] = {}
        if not table or isinstance(table, (str, bytes)):
            return cls()
        for entry in table:
            name = clean_name(_get(entry, "name"))
            if not name or name in entries:
                continue
            raw_backups = _get(entry, "backups")
            options: List[BackupOption] = []
            seen: set[str] = set()
            if isinstance(raw_backups, (list, tuple)):
                for raw in raw_backups:
                    backup_name = clean_name(_get(raw, "name"))
                    if not backup_name or backup_name == name or backup_name in seen:
                        continue
                    seen.add(backup_name)
                    options.append(BackupOption(name=backup_name, stars=_coerce_stars(_get(raw, "stars"))))
            entries[name] = tuple(options)
        return cls(entries=entries)

    def backups_for(self, name: str) -> Tuple[BackupOption, ...]:
        return self.entries.get(name, ())

    def backup_names(self, name: str) -> List[str]:
        return [option.name for option in self.backups_for(name)]

    def candidate_info(self, original: str, candidate: str) -> CandidateInfo | None:
        """Return compatibility of ``candidate`` for a slot holding ``original``.

        ``None`` means the candidate is not valid for that slot.
        """
        orig = clean_name(original)
        cand = clean_name(candidate)
        if not orig or not cand:
            return None
        if orig == cand:
            return IDENTITY
        for rank, option in enumerate(self.backups_for(orig)):
            if option.name == cand:
                return CandidateInfo(stars=option.stars, rank=rank)
        return None

    def candidates_for(self, names: Iterable[str]) -> List[str]:
        """Deduplicated candidate list: each original followed by its backups."""
        collected: List[str] = []
        seen: set[str] = set()
        for name in names:
            for candidate in (name, *self.backup_names(name)):
                if candidate and candidate not in seen:
                    seen.add(candidate)
                    collected.append(candidate)
        return collected

    def all_backup_names(self) -> List[str]:
        """Every backup name in table order, deduplicated."""
        collected: List[str] = []
        seen: set[str] = set()
        for options in self.entries.values():
            for option in options:
                if option.name not in seen:
                    seen.add(option.name)
                    collected.append(option.name)
        return collected

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: object) -> bool:
        return name in self.entries
