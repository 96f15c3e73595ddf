from __future__ import annotations

import itertools

import numpy as np
import pytest

from royale_deckbuilder.deck_builder.assignment import (
    base_slot_score,
    build_cost_matrix,
    hungarian_minimize,
    slot_score,
)
from royale_deckbuilder.deck_builder.backups import IDENTITY, CandidateInfo
from royale_deckbuilder.settings import BIG


def _brute_force(cost):
    n = len(cost)
    return min(
        sum(cost[i][perm[i]] for i in range(n))
        for perm in itertools.permutations(range(n))
    )


def test_hungarian_square():
    cost = [[4, 1, 3], [2, 0, 5], [3, 2, 2]]
    assert hungarian_minimize(cost) == [1, 0, 2]


def test_hungarian_matches_brute_force_on_random_matrices():
    rng = np.random.default_rng(7)
    for size in (2, 4, 6):
        cost = rng.integers(0, 50, size=(size, size)).astype(float)
        assignment = hungarian_minimize(cost)
        assert sorted(assignment) == list(range(size))
        total = sum(cost[i, j] for i, j in enumerate(assignment))
        assert total == _brute_force(cost.tolist())


def test_hungarian_rectangular_pads_with_big():
    cost = [[5, 9, 1, 8, 7], [4, 2, 8, 3, 9], [7, 6, 5, 1, 2]]
    assert hungarian_minimize(cost) == [2, 1, 3]


def test_hungarian_more_rows_than_columns_leaves_padding():
    assert hungarian_minimize([[5], [3]]) == [-1, 0]


def test_hungarian_ragged_and_non_finite_cells():
    assert hungarian_minimize([[float("inf"), 1], [2]]) == [1, 0]
    assert hungarian_minimize([]) == []


def test_hungarian_avoids_forbidden_cells_when_possible():
    cost = [[BIG, 0.2, BIG], [0.1, 0.3, BIG], [BIG, BIG, 0.5]]
    assert hungarian_minimize(cost) == [1, 0, 2]


def test_slot_score_bonuses():
    assert base_slot_score(3, 15) == pytest.approx(1.0)
    identity = slot_score(IDENTITY, 12)
    first_backup = slot_score(CandidateInfo(stars=3, rank=0), 12)
    second_backup = slot_score(CandidateInfo(stars=3, rank=1), 12)
    assert identity > first_backup > second_backup
    assert slot_score(CandidateInfo(stars=3, rank=0), 13) > first_backup


def test_build_cost_matrix(backups):
    slots = ["Knight", "Hog Rider"]
    candidates = backups.candidates_for(slots)
    assert candidates == ["Knight", "Valkyrie", "Mini P.E.K.K.A", "Hog Rider", "Ram Rider"]

    levels = {"Knight": 12, "Valkyrie": 12, "Ram Rider": 11}
    matrix = build_cost_matrix(slots, candidates, backups, levels)

    assert matrix.any_valid
    assert matrix.values.shape == (2, 5)
    assert matrix.values[0, 0] == pytest.approx(1 - slot_score(IDENTITY, 12))
    assert matrix.values[0, 1] == pytest.approx(1 - slot_score(CandidateInfo(3, 0), 12))
    assert matrix.is_forbidden(0, 2)  # listed backup, not owned
    assert matrix.is_forbidden(0, 3)  # not a backup of Knight
    assert matrix.is_forbidden(1, 3)  # original not owned
    assert matrix.values[1, 4] == pytest.approx(1 - slot_score(CandidateInfo(3, 0), 11))

    padded = matrix.padded()
    assert padded.shape == (5, 5)
    assert (padded[2:] == BIG).all()

    assert hungarian_minimize(padded)[:2] == [0, 4]


def test_build_cost_matrix_without_owned_candidates(backups):
    matrix = build_cost_matrix(["Knight"], ["Knight", "Valkyrie"], backups, {"Zap": 12})
    assert not matrix.any_valid
    assert (matrix.values == BIG).all()
