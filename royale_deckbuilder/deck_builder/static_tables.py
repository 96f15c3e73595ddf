"""Loaders for the static role and backup tables.

Both tables are maintained by hand outside the engine and read once at start
up. JSON and YAML are accepted; the parsed data is handed to
:class:`RoleClassifier` / :class:`BackupGraph` which own the normalisation.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Mapping

import yaml

from ..exceptions import StaticTableFormatError, StaticTableNotFoundError
from ..logging_util import get_logger
from ..path_util import card_backups_path, card_roles_path
from ..settings import TABLE_SUFFIXES
from .backups import BackupGraph
from .roles import RoleClassifier

LOGGER = get_logger(__name__)

__all__ = ["load_role_table", "load_backup_table", "read_table"]


def read_table(path: str | Path) -> Any:
    """Parse a JSON or YAML table file."""
    p = Path(path)
    if not p.exists():
        raise StaticTableNotFoundError(str(p))
    suffix = p.suffix.lower()
    if suffix not in TABLE_SUFFIXES:
        raise StaticTableFormatError(str(p), "unsupported table format", details={"suffixes": TABLE_SUFFIXES})
    text = p.read_text(encoding="utf-8")
    try:
        if suffix in (".yml", ".yaml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise StaticTableFormatError(str(p), "could not be parsed", details={"error": str(exc)}) from exc


def _backup_entries(data: Any, path: Path) -> List[Mapping[str, Any]]:
    if isinstance(data, list):
        return data
    # YAML tables are often easier to write as {card: [backups]}
    if isinstance(data, Mapping):
        return [{"name": name, "backups": backups} for name, backups in data.items()]
    raise StaticTableFormatError(str(path), "expected a list of {name, backups} entries")


def load_role_table(path: str | Path | None = None) -> RoleClassifier:
    """Load the role table (``{role: [card names]}``)."""
    resolved = card_roles_path(path)
    data = read_table(resolved)
    if not isinstance(data, Mapping):
        raise StaticTableFormatError(str(resolved), "expected a mapping of role -> card names")
    classifier = RoleClassifier.from_mapping(data)
    LOGGER.info("role_table_loaded cards=%s path=%s", len(classifier), resolved)
    return classifier


def load_backup_table(path: str | Path | None = None) -> BackupGraph:
    """Load the backup table (``[{name, backups: [{name, stars}]}]``)."""
    resolved = card_backups_path(path)
    data = read_table(resolved)
    graph = BackupGraph.from_entries(_backup_entries(data, resolved))
    LOGGER.info("backup_table_loaded cards=%s path=%s", len(graph), resolved)
    return graph
