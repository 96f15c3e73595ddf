"""Map a reference deck onto the cards a player actually owns.

The Hungarian optimizer considers, for every slot, the original card and its
listed backups, scores each owned candidate by compatibility stars and
effective level, and solves the slot/candidate assignment globally so no card
is used twice. Slots that cannot be filled keep the original card and are
reported as such; when nothing in the deck is ownable the identity strategy
is used instead (same cards, player levels overlaid).

Strategy selection is explicit: pass an :class:`OptimizationStrategy` member
or a ready callable ``(reference_deck, player_cards) -> OptimizedDeck | None``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple, Union

from ..exceptions import InvalidStrategyError
from ..logging_util import get_logger
from ..settings import DECK_SIZE
from ..type_definitions import DeckCardDict, OptimizedDeckDict, ReplacementDict
from .assignment import base_slot_score, build_cost_matrix, hungarian_minimize
from .backups import BackupGraph
from .cards import Card, build_player_levels, clean_name, index_player_cards

LOGGER = get_logger(__name__)

__all__ = [
    "ReplacementReason",
    "Replacement",
    "DeckCard",
    "OptimizedDeck",
    "OptimizationStrategy",
    "AssignmentOptimizer",
    "identity_optimize",
    "optimize_deck",
]


class ReplacementReason(str, Enum):
    KEPT_ORIGINAL = "kept_original"
    BACKUP_FOR_UNOWNED = "backup_for_unowned"
    HIGHER_LEVEL_BACKUP = "higher_level_backup"
    OPTIMIZER_BACKUP = "optimizer_backup"
    NO_VALID_REPLACEMENT = "no_valid_replacement"
    MISSING_METADATA = "missing_metadata"
    IDENTITY_FALLBACK = "identity_fallback"


_REASON_MESSAGES: Dict[ReplacementReason, str] = {
    ReplacementReason.KEPT_ORIGINAL: "Kept original card - you own this card for this slot.",
    ReplacementReason.BACKUP_FOR_UNOWNED: "You do not own the original card; using a compatible backup you own.",
    ReplacementReason.HIGHER_LEVEL_BACKUP: "Using higher-level backup (original Lv {original}, replacement Lv {replacement}).",
    ReplacementReason.OPTIMIZER_BACKUP: "Using a compatible backup chosen by the optimization algorithm.",
    ReplacementReason.NO_VALID_REPLACEMENT: "Kept original card - no valid replacement available for this slot.",
    ReplacementReason.MISSING_METADATA: "Kept original card - missing metadata for suggested replacement.",
    ReplacementReason.IDENTITY_FALLBACK: "Kept original card - none of this deck's cards or backups are owned.",
}


@dataclass(frozen=True, slots=True)
class Replacement:
    """Decision taken for one deck slot."""

    slot: int
    original_card: str
    replacement_card: str
    was_replaced: bool
    original_level: int | float
    replacement_level: int | float
    reason: ReplacementReason

    @property
    def message(self) -> str:
        return _REASON_MESSAGES[self.reason].format(
            original=self.original_level,
            replacement=self.replacement_level,
        )

    def to_dict(self) -> ReplacementDict:
        return {
            "slot": self.slot,
            "original_card": self.original_card,
            "replacement_card": self.replacement_card,
            "was_replaced": self.was_replaced,
            "original_level": self.original_level,
            "replacement_level": self.replacement_level,
            "reason": self.reason.value,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class DeckCard:
    """Resolved card in an optimized deck.

    ``level`` is the raw level for display; ``effective_level`` is what the
    optimizer scored with.
    """

    name: str
    level: int | float | None
    effective_level: int | float
    rarity: str | None = None
    id: int | str | None = None
    icon_urls: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_card(cls, card: Card) -> "DeckCard":
        return cls(
            name=card.name,
            level=card.level,
            effective_level=card.effective_level,
            rarity=card.rarity,
            id=card.id,
            icon_urls=dict(card.icon_urls),
        )

    def with_owned(self, owned: Card | None) -> "DeckCard":
        """Overlay the player's level for this card when they own it."""
        if owned is None:
            return self
        return replace(self, level=owned.level, effective_level=owned.effective_level)

    def to_dict(self) -> DeckCardDict:
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "effective_level": self.effective_level,
            "rarity": self.rarity,
            "icon_urls": dict(self.icon_urls),
        }


@dataclass(frozen=True)
class OptimizedDeck:
    cards: Tuple[DeckCard, ...]
    optimization_score: float | None
    replacements: Tuple[Replacement, ...]
    strategy: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def card_names(self) -> List[str]:
        return [card.name for card in self.cards]

    @property
    def replaced_count(self) -> int:
        return sum(1 for r in self.replacements if r.was_replaced)

    def to_dict(self) -> OptimizedDeckDict:
        return {
            "cards": [card.to_dict() for card in self.cards],
            "optimization_score": self.optimization_score,
            "replacements": [r.to_dict() for r in self.replacements],
            "strategy": self.strategy,
            "metadata": dict(self.metadata),
        }


class OptimizationStrategy(str, Enum):
    """Built-in strategies."""

    HUNGARIAN = "hungarian"
    IDENTITY = "identity"


DeckStrategy = Callable[[Any, Sequence[Any]], Union[OptimizedDeck, None]]


@dataclass(frozen=True)
class _ReferenceDeck:
    cards: Tuple[DeckCard, ...]
    metadata: Mapping[str, Any]

    @property
    def names(self) -> List[str]:
        return [card.name for card in self.cards]


def _parse_reference_deck(reference_deck: object, deck_size: int) -> _ReferenceDeck | None:
    """Validate a reference deck; ``None`` when it is unusable."""
    if isinstance(reference_deck, Mapping):
        raw_cards = reference_deck.get("cards")
        metadata = {k: v for k, v in reference_deck.items() if k != "cards"}
    elif isinstance(reference_deck, (list, tuple)):
        raw_cards = reference_deck
        metadata = {}
    else:
        return None
    if not isinstance(raw_cards, (list, tuple)) or not raw_cards:
        return None
    if len(raw_cards) != deck_size:
        LOGGER.info("reference_deck_rejected reason=card_count count=%s expected=%s", len(raw_cards), deck_size)
        return None

    cards: List[DeckCard] = []
    seen: set[str] = set()
    for raw in raw_cards:
        card = Card(name=clean_name(raw)) if isinstance(raw, str) else Card.from_record(raw)
        if card is None or not card.name:
            LOGGER.info("reference_deck_rejected reason=missing_name")
            return None
        if card.name in seen:
            LOGGER.info("reference_deck_rejected reason=duplicate_card card=%s", card.name)
            return None
        seen.add(card.name)
        cards.append(DeckCard.from_card(card))
    return _ReferenceDeck(cards=tuple(cards), metadata=metadata)


def _safe_player_cards(player_cards: object) -> Sequence[Any]:
    return player_cards if isinstance(player_cards, (list, tuple)) else []


def _identity_result(reference: _ReferenceDeck, player_cards: Sequence[Any]) -> OptimizedDeck:
    index = index_player_cards(player_cards)
    levels = build_player_levels(player_cards)
    cards = tuple(card.with_owned(index.get(card.name)) for card in reference.cards)
    replacements = tuple(
        Replacement(
            slot=slot,
            original_card=card.name,
            replacement_card=card.name,
            was_replaced=False,
            original_level=levels.get(card.name) or 0,
            replacement_level=levels.get(card.name) or 0,
            reason=ReplacementReason.IDENTITY_FALLBACK,
        )
        for slot, card in enumerate(reference.cards)
    )
    return OptimizedDeck(
        cards=cards,
        optimization_score=None,
        replacements=replacements,
        strategy=OptimizationStrategy.IDENTITY.value,
        metadata=reference.metadata,
    )


def identity_optimize(reference_deck: object, player_cards: object, *, deck_size: int = DECK_SIZE) -> OptimizedDeck | None:
    """Keep the reference cards and overlay the player's levels where owned."""
    reference = _parse_reference_deck(reference_deck, deck_size)
    if reference is None:
        return None
    return _identity_result(reference, _safe_player_cards(player_cards))


def _replacement_reason(was_replaced: bool, original_level: float, level: float) -> ReplacementReason:
    if not was_replaced:
        return ReplacementReason.KEPT_ORIGINAL
    if original_level <= 0:
        return ReplacementReason.BACKUP_FOR_UNOWNED
    if level > original_level:
        return ReplacementReason.HIGHER_LEVEL_BACKUP
    return ReplacementReason.OPTIMIZER_BACKUP


class AssignmentOptimizer:
    """Hungarian-assignment deck optimizer bound to a backup table."""

    def __init__(self, backups: BackupGraph | None = None, *, deck_size: int = DECK_SIZE) -> None:
        self.backups = backups or BackupGraph()
        self.deck_size = deck_size

    def __call__(self, reference_deck: object, player_cards: object) -> OptimizedDeck | None:
        return self.optimize(reference_deck, player_cards)

    def optimize(self, reference_deck: object, player_cards: object) -> OptimizedDeck | None:
        """Return the player's best version of ``reference_deck``, or ``None`` for unusable input."""
        reference = _parse_reference_deck(reference_deck, self.deck_size)
        if reference is None:
            return None
        safe_cards = _safe_player_cards(player_cards)

        slots = reference.names
        levels = build_player_levels(safe_cards)
        index = index_player_cards(safe_cards)
        candidates = self.backups.candidates_for(slots)

        matrix = build_cost_matrix(slots, candidates, self.backups, levels)
        if not matrix.any_valid:
            LOGGER.info("deck_optimize_identity_fallback reason=no_owned_candidates slots=%s", len(slots))
            return _identity_result(reference, safe_cards)

        col_for_row = hungarian_minimize(matrix.padded())

        cards: List[DeckCard] = []
        replacements: List[Replacement] = []
        total_score = 0.0

        for slot, original in enumerate(slots):
            original_card = reference.cards[slot]
            original_level = levels.get(original) or 0
            column = col_for_row[slot]

            reason: ReplacementReason | None = None
            if column < 0 or column >= len(candidates) or matrix.is_forbidden(slot, column):
                reason = ReplacementReason.NO_VALID_REPLACEMENT
            else:
                candidate = candidates[column]
                owned = index.get(candidate)
                if owned is None:
                    reason = ReplacementReason.MISSING_METADATA

            if reason is not None:
                replacements.append(
                    Replacement(
                        slot=slot,
                        original_card=original,
                        replacement_card=original,
                        was_replaced=False,
                        original_level=original_level,
                        replacement_level=original_level,
                        reason=reason,
                    )
                )
                cards.append(original_card.with_owned(index.get(original)))
                continue

            level = levels.get(candidate) or 0
            info = self.backups.candidate_info(original, candidate)
            if info is not None and level > 0:
                total_score += base_slot_score(info.stars, level)

            was_replaced = candidate != original
            replacements.append(
                Replacement(
                    slot=slot,
                    original_card=original,
                    replacement_card=candidate,
                    was_replaced=was_replaced,
                    original_level=original_level,
                    replacement_level=level,
                    reason=_replacement_reason(was_replaced, original_level, level),
                )
            )
            cards.append(
                DeckCard(
                    name=candidate,
                    level=owned.level,
                    effective_level=level,
                    rarity=owned.rarity or original_card.rarity,
                    id=owned.id if owned.id is not None else original_card.id,
                    icon_urls=dict(owned.icon_urls or original_card.icon_urls),
                )
            )

        result = OptimizedDeck(
            cards=tuple(cards),
            optimization_score=total_score,
            replacements=tuple(replacements),
            strategy=OptimizationStrategy.HUNGARIAN.value,
            metadata=reference.metadata,
        )
        LOGGER.info(
            "deck_optimized slots=%s candidates=%s replaced=%s score=%.4f",
            len(slots),
            len(candidates),
            result.replaced_count,
            total_score,
        )
        return result


def optimize_deck(
    reference_deck: object,
    player_cards: object,
    strategy: OptimizationStrategy | DeckStrategy | None = None,
    *,
    backups: BackupGraph | None = None,
) -> OptimizedDeck | None:
    """Optimize ``reference_deck`` for a player.

    Args:
        reference_deck: Deck record with ``cards`` (or a bare list of card records).
        player_cards: The player's owned card records; anything that is not a
            list is treated as an empty collection.
        strategy: ``OptimizationStrategy.HUNGARIAN`` (default),
            ``OptimizationStrategy.IDENTITY``, or a ready strategy callable taking
            ``(reference_deck, player_cards)``. Callables are used as-is.
        backups: Backup table for the Hungarian strategy.

    Raises:
        InvalidStrategyError: If ``strategy`` is neither a known strategy nor callable.
    """
    if not isinstance(reference_deck, (Mapping, list, tuple)):
        return None
    safe_cards = _safe_player_cards(player_cards)

    if strategy is None or strategy is OptimizationStrategy.HUNGARIAN:
        return AssignmentOptimizer(backups).optimize(reference_deck, safe_cards)
    if strategy is OptimizationStrategy.IDENTITY:
        return identity_optimize(reference_deck, safe_cards)
    if isinstance(strategy, str):
        try:
            named = OptimizationStrategy(strategy.strip().lower())
        except ValueError:
            raise InvalidStrategyError(strategy) from None
        return optimize_deck(reference_deck, safe_cards, named, backups=backups)
    if callable(strategy):
        return strategy(reference_deck, safe_cards)
    raise InvalidStrategyError(strategy)
