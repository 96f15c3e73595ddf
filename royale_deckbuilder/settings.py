from __future__ import annotations

# Standard library imports
import os
from typing import Dict, List, Tuple

# ----------------------------------------------------------------------------------
# DECK SHAPE
# ----------------------------------------------------------------------------------
DECK_SIZE: int = 8

# Slot reserved for a champion when building copy-deck links (0-based)
CHAMPION_SLOT: int = 2

# ----------------------------------------------------------------------------------
# CARD LEVEL CONSTANTS
# ----------------------------------------------------------------------------------
# Higher rarities display (and score) as higher levels. The raw level is kept for
# display; the adjusted level drives every scoring and optimization decision.
RARITY_LEVEL_BONUS: Dict[str, int] = {
    'common': 0,
    'rare': 2,
    'epic': 5,
    'legendary': 8,
    'champion': 10,
}

MIN_EFFECTIVE_LEVEL: int = 1

# ----------------------------------------------------------------------------------
# ROLE CONSTANTS
# ----------------------------------------------------------------------------------
ROLE_NAMES: Tuple[str, ...] = ('spell', 'building', 'wincon', 'unit')
DEFAULT_ROLE: str = 'unit'

# Higher wins when a card is listed under several roles
ROLE_PRIORITY: Dict[str, int] = {
    'wincon': 4,
    'building': 3,
    'spell': 2,
    'unit': 0,
}

# ----------------------------------------------------------------------------------
# BACKUP / ASSIGNMENT CONSTANTS
# ----------------------------------------------------------------------------------
MIN_STARS: int = 1
MAX_STARS: int = 3
IDENTITY_RANK: int = -1

# Cost for forbidden or padded cells in the assignment matrix
BIG: float = 1e6
# Initial "infinity" used by the Hungarian potentials
INF: float = 1e100

# Per-slot score = (stars + effective level) / SLOT_SCORE_SCALE + tie-break bonuses
SLOT_SCORE_SCALE: float = 18.0
LEVEL_TIE_BONUS: float = 1e-6
ORDER_TIE_BONUS: float = 1e-9
ORDER_TIE_BASE: int = 100
IDENTITY_BONUS: float = 1e-4
IDENTITY_TIE_TOLERANCE: float = 1e-9
IDENTITY_TIE_NUDGE: float = 1e-6

# ----------------------------------------------------------------------------------
# STATISTICS / SCORING CONSTANTS
# ----------------------------------------------------------------------------------
PMI_EPSILON: float = 1e-9

DEFAULT_SCORE_WEIGHTS: Dict[str, float] = {
    'alpha': 1.0,    # synergy
    'beta': 0.5,     # meta
    'gamma': 0.3,    # level
    'lambda_': 0.2,  # role deviation penalty
    'mu': 2.0,       # hard constraint penalty
    'nu': 1.5,       # frequency penalty
    'w_meta': 0.6,   # backup selection: meta weight
    'w_level': 0.4,  # backup selection: level weight
}

# Hard constraint thresholds (counts above these are penalized)
MAX_WINCONS: int = 1
MAX_BUILDINGS: int = 1
MAX_SPELLS: int = 2
WINCON_PENALTY: float = 10.0
BUILDING_PENALTY: float = 10.0
SPELL_PENALTY: float = 5.0

# ----------------------------------------------------------------------------------
# BEAM SEARCH CONFIGURATION
# ----------------------------------------------------------------------------------
DEFAULT_BEAM_WIDTH: int = int(os.getenv('DECK_BEAM_WIDTH', '10'))
DEFAULT_TOP_K: int = int(os.getenv('DECK_SUGGEST_TOP_K', '10'))

# beam_width * deck_size * candidates above this logs a warning
SEARCH_WORK_WARN_THRESHOLD: int = int(os.getenv('DECK_SEARCH_WORK_WARN', '250000'))

# Corpus counting is split into chunks of this many decks when run in parallel
STATS_CHUNK_SIZE: int = int(os.getenv('DECK_STATS_CHUNK_SIZE', '500'))

# ----------------------------------------------------------------------------------
# STATIC TABLE LOCATIONS
# ----------------------------------------------------------------------------------
CONFIG_DIRECTORY: str = os.getenv('DECK_CONFIG_DIR', 'config')
CARD_ROLES_PATH: str = os.getenv('CARD_ROLES_PATH', os.path.join(CONFIG_DIRECTORY, 'card_roles.json'))
CARD_BACKUPS_PATH: str = os.getenv('CARD_BACKUPS_PATH', os.path.join(CONFIG_DIRECTORY, 'card_backups.json'))

TABLE_SUFFIXES: List[str] = ['.json', '.yml', '.yaml']

# ----------------------------------------------------------------------------------
# DECK LINK CONSTANTS
# ----------------------------------------------------------------------------------
DECK_LINK_BASE: str = 'https://link.clashroyale.com/en/?clashroyale://copyDeck'
DECK_LINK_LABEL: str = os.getenv('DECK_LINK_LABEL', 'Royals')
DECK_LINK_SLOTS: str = ';'.join(['0'] * DECK_SIZE)
DECK_LINK_TT: str = '159000000'

# Optimization scores are on a 0..DECK_SIZE scale; ratings are 0..MAX_RATING stars
MAX_RATING: float = 5.0
