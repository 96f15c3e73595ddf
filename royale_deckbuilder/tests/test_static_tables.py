from __future__ import annotations

import json
from pathlib import Path

import pytest

from royale_deckbuilder.deck_builder.backups import IDENTITY, BackupGraph, CandidateInfo
from royale_deckbuilder.deck_builder.roles import Role, RoleClassifier
from royale_deckbuilder.deck_builder.static_tables import load_backup_table, load_role_table
from royale_deckbuilder.exceptions import StaticTableFormatError, StaticTableNotFoundError


def test_role_classifier_priority_and_default():
    classifier = RoleClassifier.from_mapping(
        {
            "spell": ["Zap", "X-Bow"],
            "building": ["X-Bow", "Cannon"],
            "wincon": ["X-Bow", "Hog Rider"],
        }
    )
    assert classifier.role_of("X-Bow") is Role.WINCON
    assert classifier.role_of("Cannon") is Role.BUILDING
    assert classifier.role_of("Zap") is Role.SPELL
    assert classifier.role_of("Knight") is Role.UNIT
    assert "Knight" not in classifier
    assert len(classifier) == 4


def test_role_classifier_ignores_unknown_roles(caplog: pytest.LogCaptureFixture):
    caplog.set_level("WARNING")
    classifier = RoleClassifier.from_mapping({"tank": ["Golem"], "spell": ["Zap"]})
    assert classifier.role_of("Golem") is Role.UNIT
    assert "role_table_unknown_role" in caplog.text


def test_count_roles_counts_unique_cards(roles):
    counts = roles.count_roles(["Hog Rider", "Giant", "Zap", "Zap", "Knight"])
    assert counts == {Role.SPELL: 1, Role.BUILDING: 0, Role.WINCON: 2, Role.UNIT: 1}


def test_backup_graph_normalises_entries():
    graph = BackupGraph.from_entries(
        [
            {"name": "Knight", "backups": [
                {"name": "Valkyrie", "stars": 3},
                {"name": "Knight", "stars": 3},
                {"name": "Valkyrie", "stars": 1},
                {"name": "Ice Golem", "stars": "lots"},
                {"name": "Dark Prince", "stars": 7},
                {"name": "", "stars": 2},
            ]},
            {"name": "Knight", "backups": [{"name": "Bandit", "stars": 3}]},
            {"name": "  ", "backups": []},
        ]
    )
    assert len(graph) == 1
    assert graph.backup_names("Knight") == ["Valkyrie", "Ice Golem", "Dark Prince"]
    assert [option.stars for option in graph.backups_for("Knight")] == [3, 1, 3]
    assert graph.backups_for("Golem") == ()


def test_candidate_info_identity_and_rank(backups):
    assert backups.candidate_info("Knight", "Knight") == IDENTITY
    assert IDENTITY.stars == 3 and IDENTITY.is_identity
    assert backups.candidate_info("Knight", "Mini P.E.K.K.A") == CandidateInfo(stars=2, rank=1)
    assert backups.candidate_info("Knight", "Hog Rider") is None
    assert backups.candidate_info("", "Knight") is None


def test_candidates_for_deduplicates_in_slot_order(backups):
    candidates = backups.candidates_for(["Knight", "Mini P.E.K.K.A", "Zap"])
    assert candidates == ["Knight", "Valkyrie", "Mini P.E.K.K.A", "Zap"]


def test_all_backup_names_in_table_order(backups):
    assert backups.all_backup_names() == ["Valkyrie", "Mini P.E.K.K.A", "Ram Rider", "Poison", "Tesla", "Knight"]


def test_load_role_table_json(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    caplog.set_level("INFO")
    path = tmp_path / "roles.json"
    path.write_text(json.dumps({"wincon": ["Hog Rider"], "spell": ["Zap"]}), encoding="utf-8")
    classifier = load_role_table(path)
    assert classifier.role_of("Hog Rider") is Role.WINCON
    assert "role_table_loaded" in caplog.text


def test_load_backup_table_yaml_mapping(tmp_path: Path):
    path = tmp_path / "backups.yml"
    path.write_text(
        "Knight:\n"
        "  - {name: Valkyrie, stars: 3}\n"
        "  - {name: Mini P.E.K.K.A, stars: 2}\n"
        "Zap:\n"
        "  - {name: The Log, stars: 2}\n",
        encoding="utf-8",
    )
    graph = load_backup_table(path)
    assert graph.backup_names("Knight") == ["Valkyrie", "Mini P.E.K.K.A"]
    assert graph.candidate_info("Zap", "The Log") == CandidateInfo(stars=2, rank=0)


def test_load_tables_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    path = tmp_path / "backups.json"
    path.write_text(json.dumps([{"name": "Zap", "backups": [{"name": "Arrows", "stars": 1}]}]), encoding="utf-8")
    monkeypatch.setenv("CARD_BACKUPS_PATH", str(path))
    assert load_backup_table().backup_names("Zap") == ["Arrows"]


def test_missing_table_raises(tmp_path: Path):
    with pytest.raises(StaticTableNotFoundError) as exc:
        load_role_table(tmp_path / "nope.json")
    assert exc.value.code == "TABLE_MISSING"


def test_malformed_tables_raise(tmp_path: Path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(StaticTableFormatError):
        load_backup_table(broken)

    wrong_shape = tmp_path / "roles.json"
    wrong_shape.write_text(json.dumps(["Knight"]), encoding="utf-8")
    with pytest.raises(StaticTableFormatError) as exc:
        load_role_table(wrong_shape)
    assert exc.value.code == "TABLE_FORMAT"


def test_shipped_sample_tables_load():
    root = Path(__file__).resolve().parents[2] / "config"
    roles = load_role_table(root / "card_roles.json")
    graph = load_backup_table(root / "card_backups.json")
    assert roles.role_of("X-Bow") is Role.WINCON
    assert graph.candidate_info("Knight", "Valkyrie") == CandidateInfo(stars=3, rank=0)


def test_unsupported_table_suffix_raises(tmp_path: Path):
    path = tmp_path / "roles.txt"
    path.write_text(json.dumps({"wincon": ["Hog Rider"]}), encoding="utf-8")
    with pytest.raises(StaticTableFormatError) as exc:
        load_role_table(path)
    assert exc.value.details["suffixes"] == [".json", ".yml", ".yaml"]
