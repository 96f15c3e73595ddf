from __future__ import annotations

from typing import Dict, List, Literal, Optional, TypedDict, Union

RarityName = Literal["common", "rare", "epic", "legendary", "champion"]
RoleName = Literal["spell", "building", "wincon", "unit"]


class IconUrls(TypedDict, total=False):
    medium: str
    evolutionMedium: str


class CardRecord(TypedDict, total=False):
    """Card record as supplied by the corpus source or a player profile.

    Only ``name`` is required for matching; ``level`` and ``rarity`` drive the
    effective level. Icon references are passed through untouched.
    """
    id: Union[int, str]
    name: str
    level: int
    rarity: str
    iconUrls: IconUrls
    image: str
    evolutionImage: Optional[str]


class DeckRecord(TypedDict, total=False):
    """Reference deck as supplied by the corpus source (extra keys are preserved)."""
    id: Union[int, str]
    name: str
    ownerName: str
    cards: List[CardRecord]


class BackupOptionRecord(TypedDict, total=False):
    name: str
    stars: int


class BackupTableEntry(TypedDict, total=False):
    name: str
    backups: List[BackupOptionRecord]


RoleTable = Dict[str, List[str]]


class ReplacementDict(TypedDict):
    slot: int
    original_card: str
    replacement_card: str
    was_replaced: bool
    original_level: int
    replacement_level: int
    reason: str
    message: str


class DeckCardDict(TypedDict):
    id: Optional[Union[int, str]]
    name: str
    level: Optional[int]
    effective_level: int
    rarity: Optional[str]
    icon_urls: Dict[str, str]


class OptimizedDeckDict(TypedDict):
    cards: List[DeckCardDict]
    optimization_score: Optional[float]
    replacements: List[ReplacementDict]
    strategy: str
    metadata: Dict[str, object]


class SuggestionDict(TypedDict):
    card: str
    score: float
