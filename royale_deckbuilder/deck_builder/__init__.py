from .backups import BackupGraph
from .beam_search import BeamSearchBuilder, Suggestion
from .deck_stats import DeckStats, build_deck_stats
from .optimizer import AssignmentOptimizer, OptimizationStrategy, OptimizedDeck, optimize_deck
from .roles import Role, RoleClassifier
from .scoring import DeckScorer, ScoreWeights

__all__ = [
    'AssignmentOptimizer',
    'BackupGraph',
    'BeamSearchBuilder',
    'DeckScorer',
    'DeckStats',
    'OptimizationStrategy',
    'OptimizedDeck',
    'Role',
    'RoleClassifier',
    'ScoreWeights',
    'Suggestion',
    'build_deck_stats',
    'optimize_deck',
]
