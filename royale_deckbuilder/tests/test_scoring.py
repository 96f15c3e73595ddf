from __future__ import annotations

import math

import pytest

from royale_deckbuilder.deck_builder.cards import build_player_levels
from royale_deckbuilder.deck_builder.deck_stats import build_deck_stats
from royale_deckbuilder.deck_builder.roles import RoleClassifier
from royale_deckbuilder.deck_builder.scoring import (
    DEFAULT_WEIGHTS,
    DeckScorer,
    ScoreWeights,
    frequency_penalty,
    hard_constraint_penalty,
    level_score,
    meta_score,
    role_penalty,
    synergy_score,
)
from royale_deckbuilder.exceptions import InvalidWeightsError


def test_default_weights():
    assert DEFAULT_WEIGHTS == ScoreWeights(
        alpha=1.0, beta=0.5, gamma=0.3, lambda_=0.2, mu=2.0, nu=1.5, w_meta=0.6, w_level=0.4
    )


def test_weights_from_mapping_overrides_and_alias():
    weights = ScoreWeights.from_mapping({"alpha": "2", "lambda": 0.5, "nu": None})
    assert weights.alpha == 2.0
    assert weights.lambda_ == 0.5
    assert weights.nu == DEFAULT_WEIGHTS.nu
    assert ScoreWeights.from_mapping(None) == DEFAULT_WEIGHTS


@pytest.mark.parametrize("overrides", [{"delta": 1.0}, {"alpha": "high"}, {"mu": float("nan")}])
def test_weights_from_mapping_rejects_bad_values(overrides):
    with pytest.raises(InvalidWeightsError) as exc:
        ScoreWeights.from_mapping(overrides)
    assert exc.value.code == "INVALID_WEIGHTS"


def test_frequency_penalty_bounds():
    stats = build_deck_stats([["Knight", "Zap"], ["Knight"]])
    assert frequency_penalty(["Knight"], stats) == 0.0
    assert frequency_penalty(["Golem"], stats) == 1.0
    assert frequency_penalty(["Zap"], stats) == pytest.approx(0.25)
    assert frequency_penalty([], stats) == 0.0


def test_hard_constraint_penalty_two_wincons_three_spells():
    roles = RoleClassifier.from_mapping(
        {"wincon": ["Hog Rider", "Giant"], "spell": ["Zap", "Fireball", "The Log"]}
    )
    deck = ["Hog Rider", "Giant", "Zap", "Fireball", "The Log", "Knight", "Archers", "Musketeer"]
    assert hard_constraint_penalty(deck, roles) == 15


def test_hard_constraint_penalty_squares_wincon_and_building_excess():
    roles = RoleClassifier.from_mapping(
        {"wincon": ["Hog Rider", "Giant", "Miner"], "building": ["Cannon", "Tesla"]}
    )
    assert hard_constraint_penalty(["Hog Rider", "Giant", "Miner", "Cannon", "Tesla"], roles) == 4 * 10 + 10
    assert hard_constraint_penalty(["Hog Rider", "Cannon"], roles) == 0


def test_synergy_and_meta(stats):
    assert synergy_score(["Knight"], stats) == 0.0
    pair = synergy_score(["Hog Rider", "Cannon"], stats)
    assert pair == pytest.approx(stats.pmi_of("Hog Rider", "Cannon"))

    trio = ["Hog Rider", "Cannon", "Golem"]
    expected = (stats.pmi_of("Hog Rider", "Cannon") + 0.0 + 0.0) / 3
    assert synergy_score(trio, stats) == pytest.approx(expected)

    assert meta_score(["Fireball", "Golem"], stats) == pytest.approx(0.5)


def test_level_score_normalises_by_best_card():
    levels = {"Knight": 10, "Zap": 5}
    assert level_score(["Zap"], levels) == pytest.approx(0.5)
    assert level_score(["Zap", "Golem"], levels) == pytest.approx(0.25)
    assert level_score(["Zap"], {}) == 0.0
    assert level_score(["Zap"], levels, max_level=20) == pytest.approx(0.25)


def test_role_penalty_is_sum_of_squared_z_scores(stats, roles):
    deck = ["Hog Rider", "Cannon", "Fireball", "Zap", "Knight"]
    counts = roles.count_roles(deck)
    expected = sum(
        ((counts[role] - stats.role_mean[role]) / stats.role_std[role]) ** 2 for role in counts
    )
    assert role_penalty(deck, stats, roles) == pytest.approx(expected)


def test_deck_scorer_combines_components(stats, roles, player_cards):
    levels = build_player_levels(player_cards)
    scorer = DeckScorer(stats, roles)
    deck = ["Hog Rider", "Cannon", "Fireball", "The Log", "Musketeer", "Ice Spirit", "Skeletons", "Knight"]
    result = scorer.breakdown(deck + ["Knight"], levels)
    w = result.weights
    expected = (
        w.alpha * result.synergy
        + w.beta * result.meta
        + w.gamma * result.level
        - w.lambda_ * result.role_penalty
        - w.mu * result.hard_constraint_penalty
        - w.nu * result.frequency_penalty
    )
    assert result.total == pytest.approx(expected)
    assert result.total == scorer.score(deck, levels)
    assert set(result.components) == {
        "synergy", "meta", "level", "role_penalty", "hard_constraint_penalty", "frequency_penalty",
    }
    assert math.isfinite(result.total)


def test_deck_scorer_weight_overrides(stats, roles):
    scorer = DeckScorer(stats, roles, weights={"alpha": 0.0, "beta": 0.0, "gamma": 0.0, "lambda": 0.0, "mu": 0.0})
    assert scorer.score(["Golem"], {}) == pytest.approx(-DEFAULT_WEIGHTS.nu)
    assert scorer.score(["Golem"], {}, weights={"nu": 0.0}) == 0.0
