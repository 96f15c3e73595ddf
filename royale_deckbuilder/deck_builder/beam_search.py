"""Beam-search deck construction and next-card suggestions.

The builder grows decks one card at a time. Every surviving partial deck is
extended by every playable card it does not yet contain, each child is scored
with :class:`DeckScorer`, and only the best ``beam_width`` children across all
parents survive to the next step. Partial decks are scored with the same
formula as complete ones, so the final re-score ranks the survivors
consistently with the search.

A card is *playable* when the player owns it, either directly or as a listed
backup of some card. Candidates are visited in collection order followed by
owned backups in table order, and all sorting is stable, so identical inputs
always produce identical decks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, List, Mapping, Tuple, Union

from ..exceptions import InvalidBuilderOptionError
from ..logging_util import get_logger
from ..settings import DECK_SIZE, DEFAULT_BEAM_WIDTH, DEFAULT_TOP_K, SEARCH_WORK_WARN_THRESHOLD
from ..type_definitions import SuggestionDict
from .backups import BackupGraph
from .cards import build_player_levels, clean_name, extract_card_names, unique_names
from .deck_stats import DeckStats, build_deck_stats
from .roles import RoleClassifier
from .scoring import DeckScorer, ScoreWeights, resolve_weights

LOGGER = get_logger(__name__)

__all__ = ["Suggestion", "BeamSearchBuilder"]

WeightsLike = Union[ScoreWeights, Mapping[str, object], None]


@dataclass(frozen=True, slots=True)
class Suggestion:
    card: str
    score: float

    def to_dict(self) -> SuggestionDict:
        return {"card": self.card, "score": self.score}


@dataclass(frozen=True)
class _Beam:
    deck: Tuple[str, ...]
    score: float


def _check_option(option: str, value: object, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidBuilderOptionError(option, value, details={"minimum": minimum})
    return value


class BeamSearchBuilder:
    """Builds and extends decks for a player from corpus statistics."""

    def __init__(
        self,
        stats: DeckStats,
        roles: RoleClassifier | None = None,
        backups: BackupGraph | None = None,
        *,
        weights: WeightsLike = None,
        beam_width: int = DEFAULT_BEAM_WIDTH,
        deck_size: int = DECK_SIZE,
    ) -> None:
        self._stats = stats
        self.roles = roles or RoleClassifier()
        self.backups = backups or BackupGraph()
        self.scorer = DeckScorer(stats, self.roles, weights)
        self.beam_width = _check_option("beam_width", beam_width, 1)
        self.deck_size = _check_option("deck_size", deck_size, 1)

    @classmethod
    def from_corpus(
        cls,
        corpus: object,
        roles: RoleClassifier | None = None,
        backups: BackupGraph | None = None,
        *,
        workers: int | None = None,
        **kwargs: Any,
    ) -> "BeamSearchBuilder":
        """Build the statistics model for ``corpus`` and return a builder over it.

        Raises:
            EmptyCorpusError: If the corpus is not a non-empty sequence of decks.
        """
        roles = roles or RoleClassifier()
        stats = build_deck_stats(corpus, roles, workers=workers)
        return cls(stats, roles, backups, **kwargs)

    @property
    def stats(self) -> DeckStats:
        return self._stats

    @property
    def weights(self) -> ScoreWeights:
        return self.scorer.weights

    # -- playable cards ---------------------------------------------------------

    def playable_cards(self, player_levels: Mapping[str, float]) -> List[str]:
        """Owned cards in collection order, then owned backups in table order."""
        playable: List[str] = [name for name, level in player_levels.items() if level > 0]
        seen = set(playable)
        for backup in self.backups.all_backup_names():
            if backup not in seen and (player_levels.get(backup) or 0) > 0:
                seen.add(backup)
                playable.append(backup)
        return playable

    def best_backup(self, card_name: str, player_cards: object, *, weights: WeightsLike = None) -> str | None:
        """Return the card the player should field for ``card_name``.

        The owned original wins outright. Otherwise the owned backup with the best
        ``freq_norm * w_meta + level / max_level * w_level`` is chosen (first
        listed wins ties); ``None`` when no backup is owned.
        """
        name = clean_name(card_name)
        levels = build_player_levels(player_cards)
        if (levels.get(name) or 0) > 0:
            return name
        w = self._resolve(weights)
        max_level = max(max(levels.values(), default=0), 1)

        best: str | None = None
        best_score = float("-inf")
        for backup in self.backups.backup_names(name):
            level = levels.get(backup) or 0
            if level <= 0:
                continue
            score = self._stats.freq_norm_of(backup) * w.w_meta + (level / max_level) * w.w_level
            if score > best_score:
                best, best_score = backup, score
        return best

    # -- scoring ------------------------------------------------------------------

    def _resolve(self, weights: WeightsLike) -> ScoreWeights:
        if weights is None:
            return self.scorer.weights
        return resolve_weights(weights, base=self.scorer.weights)

    def score_deck(self, deck: object, player_cards: object, *, weights: WeightsLike = None) -> float:
        """Score a complete or partial deck (names, card records or a deck record)."""
        levels = build_player_levels(player_cards)
        return self.scorer.score(extract_card_names(deck), levels, weights=self._resolve(weights))

    # -- search -------------------------------------------------------------------

    def build_deck(
        self,
        player_cards: object,
        *,
        beam_width: int | None = None,
        deck_size: int | None = None,
        weights: WeightsLike = None,
    ) -> List[str] | None:
        """Build the best deck the player can field, or ``None`` if they cannot fill one.

        Raises:
            InvalidBuilderOptionError: If ``beam_width`` or ``deck_size`` is below 1.
        """
        width = self.beam_width if beam_width is None else _check_option("beam_width", beam_width, 1)
        size = self.deck_size if deck_size is None else _check_option("deck_size", deck_size, 1)
        w = self._resolve(weights)

        levels = build_player_levels(player_cards)
        playable = self.playable_cards(levels)
        if len(playable) < size:
            LOGGER.info("deck_build_failed reason=not_enough_cards playable=%s deck_size=%s", len(playable), size)
            return None

        work = width * size * len(playable)
        if work > SEARCH_WORK_WARN_THRESHOLD:
            LOGGER.warning(
                "deck_build_large_search beam_width=%s deck_size=%s candidates=%s work=%s",
                width, size, len(playable), work,
            )

        max_level = max(max(levels.values(), default=0), 1)
        beams: List[_Beam] = [_Beam(deck=(), score=0.0)]

        for step in range(size):
            children: List[_Beam] = []
            expanded: set[FrozenSet[str]] = set()
            for beam in beams:
                in_deck = set(beam.deck)
                for card in playable:
                    if card in in_deck:
                        continue
                    deck = beam.deck + (card,)
                    # Same cards in another order score the same
                    key = frozenset(deck)
                    if key in expanded:
                        continue
                    expanded.add(key)
                    score = self.scorer.score(deck, levels, max_level=max_level, weights=w)
                    children.append(_Beam(deck=deck, score=score))
            if not children:
                LOGGER.info("deck_build_failed reason=no_candidates step=%s", step)
                return None
            children.sort(key=lambda child: child.score, reverse=True)
            beams = children[:width]

        finals = [
            _Beam(deck=beam.deck, score=self.scorer.score(beam.deck, levels, max_level=max_level, weights=w))
            for beam in beams
        ]
        finals.sort(key=lambda beam: beam.score, reverse=True)
        best = finals[0]
        LOGGER.info(
            "deck_built cards=%s score=%.4f beam_width=%s candidates=%s",
            len(best.deck), best.score, width, len(playable),
        )
        return list(best.deck)

    def suggest_next_card(
        self,
        partial_deck: object,
        player_cards: object,
        top_k: int = DEFAULT_TOP_K,
        *,
        weights: WeightsLike = None,
    ) -> List[Suggestion]:
        """Rank every playable one-card extension of ``partial_deck``.

        Returns at most ``top_k`` suggestions sorted by non-increasing score; cards
        already in the partial deck are never suggested.

        Raises:
            InvalidBuilderOptionError: If ``top_k`` is negative.
        """
        k = _check_option("top_k", top_k, 0)
        w = self._resolve(weights)
        current = unique_names(extract_card_names(partial_deck))
        in_deck = set(current)

        levels = build_player_levels(player_cards)
        max_level = max(max(levels.values(), default=0), 1)

        suggestions: List[Suggestion] = []
        for card in self.playable_cards(levels):
            if card in in_deck:
                continue
            score = self.scorer.score([*current, card], levels, max_level=max_level, weights=w)
            suggestions.append(Suggestion(card=card, score=score))
        suggestions.sort(key=lambda s: s.score, reverse=True)
        return suggestions[:k]

