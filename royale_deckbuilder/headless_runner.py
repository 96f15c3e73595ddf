from __future__ import annotations

import argparse
import json
import os
from typing import Any, Dict, List, Optional

from .deck_builder.backups import BackupGraph
from .deck_builder.beam_search import BeamSearchBuilder
from .deck_builder.cards import build_player_levels
from .deck_builder.deck_links import build_deck_link, resolve_owner_name, score_to_stars
from .deck_builder.optimizer import OptimizationStrategy, optimize_deck
from .deck_builder.roles import RoleClassifier
from .deck_builder.static_tables import load_backup_table, load_role_table
from .exceptions import DeckBuilderError
from .logging_util import enable_file_logging, get_logger
from .path_util import card_backups_path, card_roles_path
from .settings import DECK_SIZE, DEFAULT_BEAM_WIDTH, DEFAULT_TOP_K

LOGGER = get_logger(__name__)


def _load_json_file(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _player_cards(data: Any) -> List[Any]:
    # Player profiles wrap the collection as {"cards": [...]}
    if isinstance(data, dict):
        data = data.get("cards")
    return data if isinstance(data, list) else []


def _corpus_decks(data: Any) -> Any:
    if isinstance(data, dict):
        return data.get("decks")
    return data


def _roles(path: Optional[str]) -> RoleClassifier:
    # The default table is optional; an explicit path must exist
    if path or os.path.isfile(card_roles_path()):
        return load_role_table(path)
    LOGGER.info("role_table_skipped path=%s", card_roles_path())
    return RoleClassifier()


def _backups(path: Optional[str]) -> BackupGraph:
    if path or os.path.isfile(card_backups_path()):
        return load_backup_table(path)
    LOGGER.info("backup_table_skipped path=%s", card_backups_path())
    return BackupGraph()


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _run_optimize(args: argparse.Namespace) -> int:
    deck = _load_json_file(args.deck)
    player = _player_cards(_load_json_file(args.player))
    result = optimize_deck(
        deck,
        player,
        OptimizationStrategy(args.strategy),
        backups=_backups(args.backups),
    )
    if result is None:
        _print_json({"error": "reference deck is not a valid deck"})
        return 1
    payload: Dict[str, Any] = result.to_dict()
    payload["owner"] = resolve_owner_name(deck)
    payload["deck_link"] = build_deck_link(result)
    payload["stars"] = score_to_stars(result.optimization_score) if result.optimization_score is not None else None
    _print_json(payload)
    return 0


def _builder(args: argparse.Namespace) -> BeamSearchBuilder:
    corpus = _corpus_decks(_load_json_file(args.corpus))
    return BeamSearchBuilder.from_corpus(
        corpus,
        _roles(args.roles),
        _backups(args.backups),
        workers=args.workers,
        beam_width=args.beam_width,
        deck_size=args.deck_size,
    )


def _run_build(args: argparse.Namespace) -> int:
    builder = _builder(args)
    player = _player_cards(_load_json_file(args.player))
    deck = builder.build_deck(player)
    if deck is None:
        _print_json({"error": "player cannot field a full deck"})
        return 1
    breakdown = builder.scorer.breakdown(deck, build_player_levels(player))
    _print_json({"deck": deck, "score": breakdown.total, "components": breakdown.components})
    return 0


def _run_suggest(args: argparse.Namespace) -> int:
    builder = _builder(args)
    player = _player_cards(_load_json_file(args.player))
    partial = [name.strip() for name in (args.partial or "").split(",") if name.strip()]
    suggestions = builder.suggest_next_card(partial, player, args.top_k)
    if not suggestions:
        _print_json({"partial": partial, "suggestions": []})
        return 1
    _print_json({"partial": partial, "suggestions": [s.to_dict() for s in suggestions]})
    return 0


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Headless deck optimizer and builder")
    sub = p.add_subparsers(dest="command", required=True)

    opt = sub.add_parser("optimize", help="Fit a reference deck to a player's collection")
    opt.add_argument("--deck", metavar="PATH", required=True, help="Reference deck JSON")
    opt.add_argument("--player", metavar="PATH", required=True, help="Player card collection JSON")
    opt.add_argument("--backups", metavar="PATH", default=None, help="Backup table (JSON or YAML)")
    opt.add_argument("--strategy", choices=[s.value for s in OptimizationStrategy],
                     default=OptimizationStrategy.HUNGARIAN.value, help="Optimization strategy")
    opt.set_defaults(handler=_run_optimize)

    for name, help_text, handler in (
        ("build", "Build a full deck from corpus statistics", _run_build),
        ("suggest", "Suggest the next card for a partial deck", _run_suggest),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--corpus", metavar="PATH", required=True, help="Reference deck corpus JSON")
        cmd.add_argument("--player", metavar="PATH", required=True, help="Player card collection JSON")
        cmd.add_argument("--roles", metavar="PATH", default=None, help="Role table (JSON or YAML)")
        cmd.add_argument("--backups", metavar="PATH", default=None, help="Backup table (JSON or YAML)")
        cmd.add_argument("--beam-width", metavar="INT", type=int, default=DEFAULT_BEAM_WIDTH)
        cmd.add_argument("--deck-size", metavar="INT", type=int, default=DECK_SIZE)
        cmd.add_argument("--workers", metavar="INT", type=int, default=None,
                         help="Count the corpus in a process pool with this many workers")
        cmd.set_defaults(handler=handler)
        if name == "suggest":
            cmd.add_argument("--partial", metavar="NAMES", default="", help="Comma separated card names")
            cmd.add_argument("--top-k", metavar="INT", type=int, default=DEFAULT_TOP_K)
    return p


def _main(argv: Optional[List[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    enable_file_logging()
    try:
        return args.handler(args)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Error: could not read input: {exc}")
        return 2
    except DeckBuilderError as exc:
        LOGGER.warning("headless_run_failed code=%s", exc.code)
        print(str(exc))
        return 2


if __name__ == "__main__":
    raise SystemExit(_main())
