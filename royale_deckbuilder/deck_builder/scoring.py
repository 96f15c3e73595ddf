"""Deck scoring helpers.

A deck (complete or partial) is scored as a weighted blend of

* synergy      - mean pairwise PMI over the deck's unique cards
* meta         - mean normalized corpus frequency
* level        - mean effective level relative to the player's best card

minus weighted penalties for role-composition drift (squared z-scores against
the corpus role distribution), hard composition limits (several win
conditions, several buildings, too many spells) and rarely played cards.

The same formula scores partial decks during beam search and complete decks
at the end; keeping the two identical keeps search and final ranking
consistent.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Dict, Iterable, List, Mapping, Sequence

import numpy as np

from ..exceptions import InvalidWeightsError
from ..settings import (
    BUILDING_PENALTY,
    DEFAULT_SCORE_WEIGHTS,
    MAX_BUILDINGS,
    MAX_SPELLS,
    MAX_WINCONS,
    SPELL_PENALTY,
    WINCON_PENALTY,
)
from .cards import unique_names
from .deck_stats import DeckStats
from .roles import Role, RoleClassifier

__all__ = [
    "ScoreWeights",
    "ScoreBreakdown",
    "DEFAULT_WEIGHTS",
    "DeckScorer",
    "resolve_weights",
    "synergy_score",
    "meta_score",
    "level_score",
    "role_penalty",
    "hard_constraint_penalty",
    "frequency_penalty",
]


@dataclass(frozen=True)
class ScoreWeights:
    """Weight multipliers for each scoring component."""

    alpha: float     # synergy
    beta: float      # meta
    gamma: float     # level
    lambda_: float   # role penalty
    mu: float        # hard constraint penalty
    nu: float        # frequency penalty
    w_meta: float    # backup selection: meta
    w_level: float   # backup selection: level

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, object] | None, base: "ScoreWeights | None" = None) -> "ScoreWeights":
        """Return ``base`` (defaults when omitted) with the given fields replaced.

        ``lambda`` is accepted as an alias of ``lambda_``.
        """
        values = asdict(base or DEFAULT_WEIGHTS)
        if not overrides:
            return cls(**values)
        for raw_key, raw_value in overrides.items():
            key = "lambda_" if raw_key == "lambda" else str(raw_key)
            if key not in values:
                raise InvalidWeightsError(str(raw_key), details={"known": sorted(values)})
            if raw_value is None:
                continue
            try:
                value = float(raw_value)  # type: ignore[arg-type]
            except (TypeError, ValueError, OverflowError):
                raise InvalidWeightsError(str(raw_key), details={"value": repr(raw_value)}) from None
            if not math.isfinite(value):
                raise InvalidWeightsError(str(raw_key), details={"value": repr(raw_value)})
            values[key] = value
        return cls(**values)


DEFAULT_WEIGHTS = ScoreWeights(**DEFAULT_SCORE_WEIGHTS)


def resolve_weights(weights: ScoreWeights | Mapping[str, object] | None, base: ScoreWeights | None = None) -> ScoreWeights:
    if isinstance(weights, ScoreWeights):
        return weights
    return ScoreWeights.from_mapping(weights, base=base)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Result returned by :meth:`DeckScorer.breakdown`."""

    total: float
    synergy: float
    meta: float
    level: float
    role_penalty: float
    hard_constraint_penalty: float
    frequency_penalty: float
    weights: ScoreWeights

    @property
    def components(self) -> Dict[str, float]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in ("total", "weights")
        }


def synergy_score(cards: Sequence[str], stats: DeckStats) -> float:
    """Average PMI over all unordered pairs of unique cards (0 below two cards)."""
    if len(cards) < 2:
        return 0.0
    pair_count = len(cards) * (len(cards) - 1) // 2
    known = [card_id for card_id in (stats.card_id(name) for name in cards) if card_id is not None]
    if len(known) < 2:
        return 0.0
    ids = np.asarray(known, dtype=np.intp)
    block = stats.pmi[np.ix_(ids, ids)]
    total = float(np.triu(block, k=1).sum())
    return total / pair_count


def meta_score(cards: Sequence[str], stats: DeckStats) -> float:
    if not cards:
        return 0.0
    return sum(stats.freq_norm_of(name) for name in cards) / len(cards)


def level_score(cards: Sequence[str], player_levels: Mapping[str, float], max_level: float | None = None) -> float:
    """Average effective level relative to the player's best level (floored at 1)."""
    if not cards:
        return 0.0
    if max_level is None:
        max_level = max(player_levels.values(), default=0)
    max_level = max(max_level, 1)
    return sum((player_levels.get(name) or 0) / max_level for name in cards) / len(cards)


def role_penalty(cards: Sequence[str], stats: DeckStats, roles: RoleClassifier) -> float:
    """Sum over roles of the squared z-score of the deck's role count."""
    counts = roles.count_roles(cards)
    penalty = 0.0
    for role in Role:
        std = stats.role_std.get(role, 1.0) or 1.0
        z = (counts[role] - stats.role_mean.get(role, 0.0)) / std
        penalty += z * z
    return penalty


def hard_constraint_penalty(cards: Sequence[str], roles: RoleClassifier) -> float:
    """Penalty for more than one wincon, more than one building or more than two spells."""
    counts = roles.count_roles(cards)
    penalty = 0.0
    wincons = counts[Role.WINCON]
    if wincons > MAX_WINCONS:
        penalty += (wincons - MAX_WINCONS) ** 2 * WINCON_PENALTY
    buildings = counts[Role.BUILDING]
    if buildings > MAX_BUILDINGS:
        penalty += (buildings - MAX_BUILDINGS) ** 2 * BUILDING_PENALTY
    spells = counts[Role.SPELL]
    if spells > MAX_SPELLS:
        penalty += (spells - MAX_SPELLS) * SPELL_PENALTY
    return penalty


def frequency_penalty(cards: Sequence[str], stats: DeckStats) -> float:
    """Average of ``(1 - freq_norm)^2``; a never-seen card costs 1, the most played 0."""
    if not cards:
        return 0.0
    return sum((1.0 - stats.freq_norm_of(name)) ** 2 for name in cards) / len(cards)


class DeckScorer:
    """Scores decks against a statistics model and role table."""

    def __init__(
        self,
        stats: DeckStats,
        roles: RoleClassifier,
        weights: ScoreWeights | Mapping[str, object] | None = None,
    ) -> None:
        self.stats = stats
        self.roles = roles
        self.weights = resolve_weights(weights)

    def breakdown(
        self,
        deck: Iterable[str],
        player_levels: Mapping[str, float],
        *,
        max_level: float | None = None,
        weights: ScoreWeights | Mapping[str, object] | None = None,
    ) -> ScoreBreakdown:
        w = resolve_weights(weights, base=self.weights) if weights is not None else self.weights
        cards: List[str] = unique_names(deck)

        synergy = synergy_score(cards, self.stats)
        meta = meta_score(cards, self.stats)
        level = level_score(cards, player_levels, max_level)
        roles_pen = role_penalty(cards, self.stats, self.roles)
        hard_pen = hard_constraint_penalty(cards, self.roles)
        freq_pen = frequency_penalty(cards, self.stats)

        total = (
            w.alpha * synergy
            + w.beta * meta
            + w.gamma * level
            - w.lambda_ * roles_pen
            - w.mu * hard_pen
            - w.nu * freq_pen
        )
        return ScoreBreakdown(
            total=total,
            synergy=synergy,
            meta=meta,
            level=level,
            role_penalty=roles_pen,
            hard_constraint_penalty=hard_pen,
            frequency_penalty=freq_pen,
            weights=w,
        )

    def score(
        self,
        deck: Iterable[str],
        player_levels: Mapping[str, float],
        *,
        max_level: float | None = None,
        weights: ScoreWeights | Mapping[str, object] | None = None,
    ) -> float:
        return self.breakdown(deck, player_levels, max_level=max_level, weights=weights).total
