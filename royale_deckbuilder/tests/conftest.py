"""Shared fixtures: a small card pool with roles, backups, a corpus and player collections."""

import copy
import os

import pytest

# Keep test runs from writing log files into the working tree
os.environ.setdefault('LOG_TO_FILE', '0')

from royale_deckbuilder.deck_builder.backups import BackupGraph  # noqa: E402
from royale_deckbuilder.deck_builder.deck_stats import build_deck_stats  # noqa: E402
from royale_deckbuilder.deck_builder.roles import RoleClassifier  # noqa: E402
from royale_deckbuilder.tests.deck_test_utils import (  # noqa: E402
    BACKUP_TABLE,
    CORPUS,
    PLAYER_CARDS,
    REFERENCE_DECK,
    ROLE_TABLE,
)


@pytest.fixture(autouse=True)
def ensure_test_environment():
    """Restore environment variables changed by a test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def roles() -> RoleClassifier:
    return RoleClassifier.from_mapping(ROLE_TABLE)


@pytest.fixture
def backups() -> BackupGraph:
    return BackupGraph.from_entries(BACKUP_TABLE)


@pytest.fixture
def corpus():
    return copy.deepcopy(CORPUS)


@pytest.fixture
def stats(corpus, roles):
    return build_deck_stats(corpus, roles)


@pytest.fixture
def reference_deck():
    return copy.deepcopy(REFERENCE_DECK)


@pytest.fixture
def player_cards():
    return copy.deepcopy(PLAYER_CARDS)
