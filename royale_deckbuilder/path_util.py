from __future__ import annotations

import os
from pathlib import Path

from .settings import CARD_BACKUPS_PATH, CARD_ROLES_PATH


def card_roles_path(override: str | Path | None = None) -> Path:
    """Return the location of the card role table.

    An explicit override wins, then CARD_ROLES_PATH from the environment, then the
    settings default.
    """
    if override:
        return Path(override)
    env = os.getenv("CARD_ROLES_PATH")
    if env and env.strip():
        return Path(env.strip())
    return Path(CARD_ROLES_PATH)


def card_backups_path(override: str | Path | None = None) -> Path:
    """Return the location of the card backup table."""
    if override:
        return Path(override)
    env = os.getenv("CARD_BACKUPS_PATH")
    if env and env.strip():
        return Path(env.strip())
    return Path(CARD_BACKUPS_PATH)
