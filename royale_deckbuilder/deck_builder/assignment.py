"""Slot -> candidate cost matrix and the Hungarian (Kuhn-Munkres) solver.

Rows are deck slots, columns are candidate cards (every original card plus its
backups, deduplicated across the deck). A cell holds ``1 - score`` when the
candidate may fill the slot and the player owns it, ``BIG`` otherwise. The
solver returns a global one-to-one assignment, so a candidate can never fill
two slots.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Mapping, Sequence

import numpy as np

from ..settings import (
    BIG,
    IDENTITY_BONUS,
    IDENTITY_TIE_NUDGE,
    IDENTITY_TIE_TOLERANCE,
    INF,
    LEVEL_TIE_BONUS,
    MAX_STARS,
    ORDER_TIE_BASE,
    ORDER_TIE_BONUS,
    SLOT_SCORE_SCALE,
)
from .backups import BackupGraph, CandidateInfo

__all__ = [
    "CostMatrix",
    "base_slot_score",
    "slot_score",
    "build_cost_matrix",
    "hungarian_minimize",
]


def base_slot_score(stars: int, level: float) -> float:
    return (stars + level) / SLOT_SCORE_SCALE


def slot_score(info: CandidateInfo, level: float) -> float:
    """Score of a candidate for a slot, including the tie-break bonuses.

    Higher owned level, earlier backup rank and keeping the original card each
    add a tiny bonus that only matters when base scores tie.
    """
    score = base_slot_score(info.stars, level)
    bonus = level * LEVEL_TIE_BONUS
    if not info.is_identity:
        bonus += (ORDER_TIE_BASE - info.rank) * ORDER_TIE_BONUS
    else:
        bonus += IDENTITY_BONUS
    return score + bonus


def _identity_score(level: float) -> float:
    return base_slot_score(MAX_STARS, level) + level * LEVEL_TIE_BONUS + IDENTITY_BONUS


@dataclass(frozen=True, eq=False)
class CostMatrix:
    """Rectangular slot x candidate costs; :meth:`padded` squares it with ``BIG``."""

    slots: tuple[str, ...]
    candidates: tuple[str, ...]
    values: np.ndarray
    any_valid: bool

    @property
    def size(self) -> int:
        return max(len(self.slots), len(self.candidates))

    def is_forbidden(self, slot: int, candidate: int) -> bool:
        return bool(self.values[slot, candidate] >= BIG)

    def padded(self) -> np.ndarray:
        n = self.size
        square = np.full((n, n), BIG, dtype=np.float64)
        square[: len(self.slots), : len(self.candidates)] = self.values
        return square


def build_cost_matrix(
    slots: Sequence[str],
    candidates: Sequence[str],
    backups: BackupGraph,
    player_levels: Mapping[str, float],
) -> CostMatrix:
    values = np.full((len(slots), len(candidates)), BIG, dtype=np.float64)
    any_valid = False

    for slot, original in enumerate(slots):
        original_level = player_levels.get(original) or 0
        original_score = _identity_score(original_level) if original_level > 0 else None

        for column, candidate in enumerate(candidates):
            info = backups.candidate_info(original, candidate)
            if info is None:
                continue
            level = player_levels.get(candidate) or 0
            if level <= 0:
                continue
            any_valid = True

            score = slot_score(info, level)
            # A backup that ties the original is nudged below it so the
            # solver keeps the original card.
            if (
                candidate != original
                and original_score is not None
                and abs(score - original_score) < IDENTITY_TIE_TOLERANCE
            ):
                score = original_score - IDENTITY_TIE_NUDGE
            values[slot, column] = 1.0 - score

    values.setflags(write=False)
    return CostMatrix(slots=tuple(slots), candidates=tuple(candidates), values=values, any_valid=any_valid)


def hungarian_minimize(cost: np.ndarray | Sequence[Sequence[float]]) -> List[int]:
    """Minimum-cost perfect matching with potentials, O(n^3).

    The input may be rectangular or ragged; it is padded to a square matrix with
    ``BIG`` and non-finite cells are treated as ``BIG``.

    Returns:
        ``col_for_row`` with one entry per input row; ``-1`` when a row was
        matched to a padding column.
    """
    rows = [list(row) for row in cost]
    n_rows = len(rows)
    if n_rows == 0:
        return []
    n_cols = max((len(row) for row in rows), default=0)
    n = max(n_rows, n_cols)

    # 1-indexed square matrix
    a = np.full((n + 1, n + 1), BIG, dtype=np.float64)
    for i, row in enumerate(rows, start=1):
        for j, value in enumerate(row, start=1):
            number = float(value)
            a[i, j] = number if math.isfinite(number) else BIG

    u = np.zeros(n + 1, dtype=np.float64)
    v = np.zeros(n + 1, dtype=np.float64)
    p = np.zeros(n + 1, dtype=np.intp)
    way = np.zeros(n + 1, dtype=np.intp)

    for i in range(1, n + 1):
        p[0] = i
        j0 = 0
        minv = np.full(n + 1, INF, dtype=np.float64)
        used = np.zeros(n + 1, dtype=bool)

        # Grow an alternating tree until a free column is reached
        while True:
            used[j0] = True
            i0 = p[j0]
            free = ~used
            free[0] = False

            cur = a[i0] - u[i0] - v
            improve = free & (cur < minv)
            minv[improve] = cur[improve]
            way[improve] = j0

            masked = np.where(free, minv, np.inf)
            j1 = int(np.argmin(masked))
            delta = masked[j1]

            u[p[used]] += delta
            v[used] -= delta
            minv[~used] -= delta

            j0 = j1
            if p[j0] == 0:
                break

        # Augment along the path
        while True:
            j1 = way[j0]
            p[j0] = p[j1]
            j0 = j1
            if j0 == 0:
                break

    col_for_row = [-1] * n_rows
    for j in range(1, n + 1):
        i = int(p[j])
        if 1 <= i <= n_rows and j <= n_cols:
            col_for_row[i - 1] = j - 1
    return col_for_row
