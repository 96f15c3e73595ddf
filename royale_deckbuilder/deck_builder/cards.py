"""Card records, rarities and effective levels.

Every engine component works on card *names* (the matching key) and on the
player's *effective* level, i.e. the raw level adjusted by a per-rarity bonus.
The raw level is preserved on :class:`Card` for display.

Inputs arrive from external collaborators as loosely shaped records (plain
dicts from JSON, or attribute objects). The helpers here normalise them and
silently skip malformed entries; they never raise on bad per-card data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Sequence

from ..settings import MIN_EFFECTIVE_LEVEL, RARITY_LEVEL_BONUS

__all__ = [
    "Rarity",
    "Card",
    "effective_level",
    "rarity_bonus",
    "clean_name",
    "build_player_levels",
    "index_player_cards",
    "extract_card_names",
    "unique_names",
]


class Rarity(str, Enum):
    """Card rarities with a level bonus."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    CHAMPION = "champion"

    @classmethod
    def from_value(cls, value: object) -> "Rarity | None":
        if isinstance(value, Rarity):
            return value
        if not isinstance(value, str):
            return None
        token = value.strip().casefold()
        for rarity in cls:
            if rarity.value == token:
                return rarity
        return None

    @property
    def level_bonus(self) -> int:
        return RARITY_LEVEL_BONUS[self.value]


def _get_attr(source: object, attr: str) -> object:
    if isinstance(source, Mapping):
        return source.get(attr)
    return getattr(source, attr, None)


def clean_name(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _coerce_level(value: object) -> int | float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return int(number) if number.is_integer() else number


def rarity_bonus(rarity: object) -> int:
    """Return the level bonus for a rarity; unknown rarities add nothing."""
    resolved = Rarity.from_value(rarity)
    return resolved.level_bonus if resolved is not None else 0


def effective_level(level: object, rarity: object) -> int | float:
    """Return ``max(1, level + rarity bonus)``.

    A missing or unusable raw level counts as level 1 so the result is always a
    usable effective level; ownership is decided separately from the raw level.
    """
    base = _coerce_level(level)
    if base is None:
        base = MIN_EFFECTIVE_LEVEL
    return max(MIN_EFFECTIVE_LEVEL, base + rarity_bonus(rarity))


@dataclass(frozen=True, slots=True)
class Card:
    """Normalized card record."""

    name: str
    level: int | float | None = None
    rarity: str | None = None
    id: int | str | None = None
    icon_urls: Mapping[str, str] = field(default_factory=dict)

    @property
    def effective_level(self) -> int | float:
        return effective_level(self.level, self.rarity)

    @property
    def is_owned(self) -> bool:
        return self.level is not None

    @property
    def is_champion(self) -> bool:
        return Rarity.from_value(self.rarity) is Rarity.CHAMPION

    @classmethod
    def from_record(cls, source: object) -> "Card | None":
        """Build a card from a dict/attribute record; ``None`` when it has no name."""
        if isinstance(source, Card):
            return source
        if source is None:
            return None
        name = clean_name(_get_attr(source, "name"))
        if not name:
            return None
        rarity_raw = _get_attr(source, "rarity")
        rarity = rarity_raw.strip().casefold() if isinstance(rarity_raw, str) and rarity_raw.strip() else None
        icons = _get_attr(source, "iconUrls") or _get_attr(source, "icon_urls")
        icon_urls: Dict[str, str] = {}
        if isinstance(icons, Mapping):
            icon_urls = {str(k): str(v) for k, v in icons.items() if v is not None}
        else:
            image = _get_attr(source, "image")
            evolution = _get_attr(source, "evolutionImage")
            if image:
                icon_urls["medium"] = str(image)
            if evolution:
                icon_urls["evolutionMedium"] = str(evolution)
        return cls(
            name=name,
            level=_coerce_level(_get_attr(source, "level")),
            rarity=rarity,
            id=_get_attr(source, "id"),
            icon_urls=icon_urls,
        )


def _iter_cards(player_cards: object) -> Iterable[Card]:
    if not isinstance(player_cards, (list, tuple)):
        return ()
    cards = (Card.from_record(entry) for entry in player_cards)
    return (card for card in cards if card is not None)


def build_player_levels(player_cards: object) -> Dict[str, int | float]:
    """Map card name -> best effective level the player owns.

    Entries without a name or with a missing/non-positive level are unowned and
    skipped. Duplicate names keep the highest effective level. Iteration order
    follows first appearance in the collection.
    """
    levels: Dict[str, int | float] = {}
    for card in _iter_cards(player_cards):
        if not card.is_owned:
            continue
        level = card.effective_level
        existing = levels.get(card.name)
        if existing is None or level > existing:
            levels[card.name] = level
    return levels


def index_player_cards(player_cards: object) -> Dict[str, Card]:
    """Map card name -> the owned record that provides the best effective level."""
    index: Dict[str, Card] = {}
    for card in _iter_cards(player_cards):
        if not card.is_owned:
            continue
        existing = index.get(card.name)
        if existing is None or card.effective_level > existing.effective_level:
            index[card.name] = card
    return index


def extract_card_names(deck: object) -> List[str]:
    """Return the card names of a deck.

    Accepts a list of names, a list of card records, or a deck record with a
    ``cards`` list. Unnamed entries are dropped; order is preserved.
    """
    if deck is None:
        return []
    if isinstance(deck, Mapping):
        return extract_card_names(deck.get("cards"))
    if isinstance(deck, (str, bytes)):
        return []
    if isinstance(deck, Sequence):
        names: List[str] = []
        for entry in deck:
            name = clean_name(entry) if isinstance(entry, str) else clean_name(_get_attr(entry, "name"))
            if name:
                names.append(name)
        return names
    cards = getattr(deck, "cards", None)
    if cards is not None:
        return extract_card_names(cards)
    return []


def unique_names(names: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    collected: List[str] = []
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        collected.append(name)
    return collected
