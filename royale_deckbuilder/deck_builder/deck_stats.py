"""Deck statistics learned from a corpus of reference decks.

Counting is a map-reduce over :class:`CorpusCounts`: each chunk of decks is
counted independently (card frequencies, unordered pair counts and per-deck
role counts) and the partial counts are merged. All aggregated quantities are
sums, so merging is associative and chunked/parallel counting produces the
same model as a single pass.

The finished :class:`DeckStats` interns card names to integer ids (first
appearance order) and stores every quantity in write-protected numpy arrays:

* ``freq[i]``       number of decks containing card ``i``
* ``freq_norm[i]``  ``freq[i] / max(freq)``
* ``p[i]``          ``freq[i] / N``
* ``joint[i, j]``   fraction of decks containing both cards (symmetric)
* ``pmi[i, j]``     ``ln((joint + eps) / (p[i] * p[j] + eps))`` for pairs that
                    co-occurred at least once, ``0`` otherwise
* ``role_mean`` / ``role_std``  per-role mean and population std of per-deck
                    role counts (a zero std is floored to 1)
"""

from __future__ import annotations

from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np
import pandas as pd

from ..exceptions import EmptyCorpusError
from ..logging_util import get_logger
from ..settings import PMI_EPSILON, STATS_CHUNK_SIZE
from .cards import extract_card_names, unique_names
from .roles import Role, RoleClassifier

LOGGER = get_logger(__name__)

__all__ = [
    "CorpusCounts",
    "DeckStats",
    "build_deck_stats",
]


@dataclass
class CorpusCounts:
    """Mergeable raw counts for a slice of the corpus."""

    names: List[str] = field(default_factory=list)
    ids: Dict[str, int] = field(default_factory=dict)
    freq: List[int] = field(default_factory=list)
    pairs: Counter = field(default_factory=Counter)
    role_samples: Dict[Role, List[int]] = field(default_factory=lambda: {role: [] for role in Role})
    deck_count: int = 0

    def intern(self, name: str) -> int:
        card_id = self.ids.get(name)
        if card_id is None:
            card_id = len(self.names)
            self.ids[name] = card_id
            self.names.append(name)
            self.freq.append(0)
        return card_id

    def add_deck(self, names: Sequence[str], roles: RoleClassifier) -> None:
        """Count one deck (already reduced to unique names)."""
        self.deck_count += 1
        if not names:
            return
        card_ids = [self.intern(name) for name in names]
        for card_id in card_ids:
            self.freq[card_id] += 1
        for i, first in enumerate(card_ids):
            for second in card_ids[i + 1:]:
                key = (first, second) if first < second else (second, first)
                self.pairs[key] += 1
        role_counts = roles.count_roles(names)
        for role in Role:
            self.role_samples[role].append(role_counts[role])

    @classmethod
    def from_decks(cls, decks: Iterable[Sequence[str]], roles: RoleClassifier) -> "CorpusCounts":
        counts = cls()
        for names in decks:
            counts.add_deck(names, roles)
        return counts

    def merge(self, other: "CorpusCounts") -> "CorpusCounts":
        """Return a new count set holding ``self`` followed by ``other``."""
        merged = CorpusCounts(
            names=list(self.names),
            ids=dict(self.ids),
            freq=list(self.freq),
            pairs=Counter(self.pairs),
            role_samples={role: list(self.role_samples[role]) for role in Role},
            deck_count=self.deck_count + other.deck_count,
        )
        remap = [merged.intern(name) for name in other.names]
        for other_id, count in enumerate(other.freq):
            merged.freq[remap[other_id]] += count
        for (first, second), count in other.pairs.items():
            a, b = remap[first], remap[second]
            key = (a, b) if a < b else (b, a)
            merged.pairs[key] += count
        for role in Role:
            merged.role_samples[role].extend(other.role_samples[role])
        return merged


def _readonly(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class DeckStats:
    """Immutable statistics model; build with :func:`build_deck_stats`."""

    deck_count: int
    names: Tuple[str, ...]
    ids: Mapping[str, int]
    card_roles: Tuple[Role, ...]
    freq: np.ndarray
    freq_norm: np.ndarray
    p: np.ndarray
    joint: np.ndarray
    pmi: np.ndarray
    role_mean: Mapping[Role, float]
    role_std: Mapping[Role, float]

    @classmethod
    def from_counts(cls, counts: CorpusCounts, roles: RoleClassifier) -> "DeckStats":
        if counts.deck_count <= 0:
            raise EmptyCorpusError(details={"deck_count": counts.deck_count})
        n_decks = counts.deck_count
        n_cards = len(counts.names)

        freq = np.asarray(counts.freq, dtype=np.int64)
        max_freq = max(int(freq.max()) if n_cards else 0, 1)
        freq_norm = freq / max_freq
        p = freq / n_decks

        joint_counts = np.zeros((n_cards, n_cards), dtype=np.int64)
        for (first, second), count in counts.pairs.items():
            joint_counts[first, second] = count
            joint_counts[second, first] = count
        joint = joint_counts / n_decks

        pmi = np.zeros((n_cards, n_cards), dtype=np.float64)
        co_occurs = joint_counts > 0
        if co_occurs.any():
            expected = np.outer(p, p)
            ratio = (joint + PMI_EPSILON) / (expected + PMI_EPSILON)
            pmi[co_occurs] = np.log(ratio[co_occurs])

        role_mean: Dict[Role, float] = {}
        role_std: Dict[Role, float] = {}
        for role in Role:
            samples = np.asarray(counts.role_samples[role], dtype=np.float64)
            if samples.size == 0:
                role_mean[role] = 0.0
                role_std[role] = 1.0
                continue
            role_mean[role] = float(samples.mean())
            role_std[role] = float(samples.std()) or 1.0

        return cls(
            deck_count=n_decks,
            names=tuple(counts.names),
            ids=dict(counts.ids),
            card_roles=tuple(roles.role_of(name) for name in counts.names),
            freq=_readonly(freq),
            freq_norm=_readonly(freq_norm),
            p=_readonly(p),
            joint=_readonly(joint),
            pmi=_readonly(pmi),
            role_mean=role_mean,
            role_std=role_std,
        )

    # -- name keyed lookups -------------------------------------------------

    def card_id(self, name: str) -> int | None:
        return self.ids.get(name)

    def freq_of(self, name: str) -> int:
        card_id = self.ids.get(name)
        return int(self.freq[card_id]) if card_id is not None else 0

    def freq_norm_of(self, name: str) -> float:
        card_id = self.ids.get(name)
        return float(self.freq_norm[card_id]) if card_id is not None else 0.0

    def p_of(self, name: str) -> float:
        card_id = self.ids.get(name)
        return float(self.p[card_id]) if card_id is not None else 0.0

    def p2_of(self, first: str, second: str) -> float:
        a, b = self.ids.get(first), self.ids.get(second)
        if a is None or b is None or a == b:
            return 0.0
        return float(self.joint[a, b])

    def pmi_of(self, first: str, second: str) -> float:
        """Symmetric PMI lookup; unknown cards and unseen pairs score 0."""
        a, b = self.ids.get(first), self.ids.get(second)
        if a is None or b is None or a == b:
            return 0.0
        return float(self.pmi[a, b])

    def __contains__(self, name: object) -> bool:
        return name in self.ids

    def __len__(self) -> int:
        return len(self.names)

    # -- inspection -----------------------------------------------------------

    def most_frequent(self, limit: int = 10) -> List[Tuple[str, int]]:
        order = sorted(range(len(self.names)), key=lambda i: (-int(self.freq[i]), self.names[i]))
        return [(self.names[i], int(self.freq[i])) for i in order[:limit]]

    def card_frame(self) -> pd.DataFrame:
        """Per-card table sorted by frequency (descending) then name."""
        df = pd.DataFrame(
            {
                "card": list(self.names),
                "role": [role.value for role in self.card_roles],
                "freq": self.freq.copy(),
                "freq_norm": self.freq_norm.copy(),
                "p": self.p.copy(),
            }
        )
        df.sort_values(by=["freq", "card"], ascending=[False, True], inplace=True, kind="mergesort")
        return df.reset_index(drop=True)

    def pair_frame(self, min_count: int = 1) -> pd.DataFrame:
        """Co-occurring pairs with joint probability and PMI, highest PMI first."""
        upper_a, upper_b = np.triu_indices(len(self.names), k=1)
        counts = np.rint(self.joint[upper_a, upper_b] * self.deck_count).astype(np.int64)
        keep = counts >= max(min_count, 1)
        df = pd.DataFrame(
            {
                "card_a": [self.names[i] for i in upper_a[keep]],
                "card_b": [self.names[i] for i in upper_b[keep]],
                "joint_count": counts[keep],
                "p2": self.joint[upper_a, upper_b][keep],
                "pmi": self.pmi[upper_a, upper_b][keep],
            }
        )
        df.sort_values(by=["pmi", "card_a", "card_b"], ascending=[False, True, True], inplace=True, kind="mergesort")
        return df.reset_index(drop=True)

    def to_dict(self) -> Dict[str, object]:
        """Plain-dict view keyed by card name (for debugging and JSON export)."""
        p2: Dict[str, Dict[str, float]] = {}
        pmi: Dict[str, Dict[str, float]] = {}
        rows, cols = np.nonzero(np.triu(self.joint > 0, k=1))
        for a, b in zip(rows.tolist(), cols.tolist()):
            first, second = self.names[a], self.names[b]
            p2.setdefault(first, {})[second] = float(self.joint[a, b])
            pmi.setdefault(first, {})[second] = float(self.pmi[a, b])
        return {
            "deck_count": self.deck_count,
            "freq": {name: int(self.freq[i]) for i, name in enumerate(self.names)},
            "freq_norm": {name: float(self.freq_norm[i]) for i, name in enumerate(self.names)},
            "p": {name: float(self.p[i]) for i, name in enumerate(self.names)},
            "p2": p2,
            "pmi": pmi,
            "role_stats": {
                "mean": {role.value: value for role, value in self.role_mean.items()},
                "std": {role.value: value for role, value in self.role_std.items()},
            },
        }


def _count_chunk(decks: List[List[str]], roles: RoleClassifier) -> CorpusCounts:
    return CorpusCounts.from_decks(decks, roles)


def _count_parallel(decks: List[List[str]], roles: RoleClassifier, workers: int, chunk_size: int) -> CorpusCounts:
    chunks = [decks[i:i + chunk_size] for i in range(0, len(decks), chunk_size)]
    try:
        # Processes bypass the GIL; chunks are merged in submission order
        with ProcessPoolExecutor(max_workers=workers) as ex:
            partials = list(ex.map(_count_chunk, chunks, [roles] * len(chunks)))
    except (OSError, RuntimeError) as exc:
        LOGGER.warning("deck_stats_parallel_unavailable error=%s; counting sequentially", exc)
        return CorpusCounts.from_decks(decks, roles)
    merged = CorpusCounts()
    for partial in partials:
        merged = merged.merge(partial)
    return merged


def build_deck_stats(
    corpus: object,
    roles: RoleClassifier | None = None,
    *,
    workers: int | None = None,
    chunk_size: int = STATS_CHUNK_SIZE,
) -> DeckStats:
    """Build the statistics model for a reference deck corpus.

    Args:
        corpus: Sequence of decks; each deck is a deck record with ``cards``, a
            list of card records, or a list of card names.
        roles: Role classifier used for the per-role count distribution.
        workers: When greater than 1, count chunks of the corpus in a process pool.
        chunk_size: Decks per chunk for parallel counting.

    Raises:
        EmptyCorpusError: If the corpus is not a non-empty sequence.
    """
    if isinstance(corpus, (str, bytes)) or not isinstance(corpus, Sequence) or len(corpus) == 0:
        raise EmptyCorpusError(details={"type": type(corpus).__name__})
    roles = roles or RoleClassifier()
    decks = [unique_names(extract_card_names(deck)) for deck in corpus]

    if workers and workers > 1 and len(decks) > max(chunk_size, 1):
        counts = _count_parallel(decks, roles, workers, max(chunk_size, 1))
    else:
        counts = CorpusCounts.from_decks(decks, roles)

    stats = DeckStats.from_counts(counts, roles)
    LOGGER.info("deck_stats_built decks=%s cards=%s pairs=%s", stats.deck_count, len(stats), len(counts.pairs))
    return stats
