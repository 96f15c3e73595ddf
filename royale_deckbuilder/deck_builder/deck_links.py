"""Presentation helpers for finished decks: slot order, copy-deck links and star ratings."""

from __future__ import annotations

import math
import re
from typing import Any, List, Mapping, Sequence
from urllib.parse import quote

from ..settings import (
    CHAMPION_SLOT,
    DECK_LINK_BASE,
    DECK_LINK_LABEL,
    DECK_LINK_SLOTS,
    DECK_LINK_TT,
    DECK_SIZE,
    MAX_RATING,
)
from .cards import Rarity

__all__ = [
    "place_champion",
    "resolve_card_id",
    "build_deck_link",
    "resolve_owner_name",
    "score_to_stars",
]

_ID_FIELDS = ("cardID", "cardId", "id", "clashId", "meshId")
_LEADING_NON_DIGITS = re.compile(r"^\D+")


def _get_attr(source: object, attr: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(attr)
    return getattr(source, attr, None)


def _is_champion(card: object) -> bool:
    return Rarity.from_value(_get_attr(card, "rarity")) is Rarity.CHAMPION


def place_champion(cards: Sequence[Any]) -> List[Any]:
    """Move the first champion of a full deck into the champion slot.

    Other cards keep their relative order. Decks that are not full, or have no
    champion, come back unchanged.
    """
    ordered = list(cards)
    if len(ordered) != DECK_SIZE:
        return ordered
    index = next((i for i, card in enumerate(ordered) if card is not None and _is_champion(card)), -1)
    if index in (-1, CHAMPION_SLOT):
        return ordered
    champion = ordered.pop(index)
    ordered.insert(CHAMPION_SLOT, champion)
    return ordered


def _as_integer(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def resolve_card_id(card: object) -> int | None:
    """Return the numeric game id of a card record, trying the known id fields in order."""
    if card is None:
        return None
    for attr in _ID_FIELDS:
        number = _as_integer(_get_attr(card, attr))
        if number is not None:
            return number
    key = _get_attr(card, "key")
    if isinstance(key, str) and key:
        return _as_integer(_LEADING_NON_DIGITS.sub("", key))
    return None


def build_deck_link(deck: object, label: str | None = DECK_LINK_LABEL) -> str | None:
    """Build the in-game copy-deck URL for a deck.

    ``deck`` may be a deck record with ``cards``, an :class:`OptimizedDeck`, or
    a plain list of card records. Returns ``None`` unless every one of the
    deck's cards resolves to a numeric id.
    """
    cards = deck if isinstance(deck, (list, tuple)) else _get_attr(deck, "cards")
    if not isinstance(cards, (list, tuple)):
        return None
    ids = [resolve_card_id(card) for card in place_champion(cards)]
    resolved = [str(card_id) for card_id in ids if card_id is not None]
    if len(resolved) != DECK_SIZE:
        return None
    link = f"{DECK_LINK_BASE}?deck={';'.join(resolved)}"
    if label:
        link += f"&l={quote(label, safe='')}"
    return f"{link}&slots={DECK_LINK_SLOTS}&tt={DECK_LINK_TT}"


def resolve_owner_name(deck: object) -> str | None:
    """Best-effort display name of a reference deck's owner."""
    owner = _get_attr(deck, "ownerName")
    if owner:
        return str(owner)
    player = _get_attr(deck, "player")
    name = _get_attr(player, "name") if player is not None else None
    if name:
        return str(name)
    for attr in ("playerName", "playerTag", "owner"):
        value = _get_attr(deck, attr)
        if value:
            return str(value)
    return None


def score_to_stars(score: object) -> float:
    """Convert an optimization score (0..DECK_SIZE) into a 0..5 rating in half-star steps."""
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
        return 0.0
    stars = score / DECK_SIZE * MAX_RATING
    rounded = math.floor(stars * 2 + 0.5) / 2
    return min(max(rounded, 0.0), MAX_RATING)
