from __future__ import annotations

import pytest

from royale_deckbuilder.deck_builder.deck_links import (
    build_deck_link,
    place_champion,
    resolve_card_id,
    resolve_owner_name,
    score_to_stars,
)
from royale_deckbuilder.deck_builder.optimizer import optimize_deck


def _deck(champion_at=None):
    cards = [{"id": 26000000 + i, "name": f"Card {i}", "rarity": "common"} for i in range(8)]
    if champion_at is not None:
        cards[champion_at]["rarity"] = "Champion"
    return cards


def test_place_champion_moves_first_champion_to_slot_two():
    cards = _deck(champion_at=6)
    ordered = place_champion(cards)
    assert ordered[2]["name"] == "Card 6"
    assert [c["name"] for c in ordered] == [
        "Card 0", "Card 1", "Card 6", "Card 2", "Card 3", "Card 4", "Card 5", "Card 7",
    ]
    assert cards[6]["name"] == "Card 6"


def test_place_champion_leaves_other_decks_alone():
    assert place_champion(_deck()) == _deck()
    assert place_champion(_deck(champion_at=2)) == _deck(champion_at=2)
    short = _deck(champion_at=5)[:7]
    assert place_champion(short) == short


def test_resolve_card_id_field_order():
    assert resolve_card_id({"cardID": "26000010", "id": 5}) == 26000010
    assert resolve_card_id({"id": "abc", "clashId": 28000000}) == 28000000
    assert resolve_card_id({"key": "card-27000003"}) == 27000003
    assert resolve_card_id({"id": 1.5}) is None
    assert resolve_card_id(None) is None


def test_build_deck_link():
    link = build_deck_link({"cards": _deck(champion_at=0)})
    assert link == (
        "https://link.clashroyale.com/en/?clashroyale://copyDeck"
        "?deck=26000001;26000002;26000000;26000003;26000004;26000005;26000006;26000007"
        "&l=Royals&slots=0;0;0;0;0;0;0;0&tt=159000000"
    )
    assert "&l=" not in build_deck_link(_deck(), label=None)


def test_build_deck_link_needs_eight_ids():
    cards = _deck()
    cards[3].pop("id")
    assert build_deck_link(cards) is None
    assert build_deck_link(None) is None
    assert build_deck_link({"cards": "nope"}) is None


def test_build_deck_link_from_optimized_deck(reference_deck, player_cards, backups):
    result = optimize_deck(reference_deck, player_cards, backups=backups)
    link = build_deck_link(result)
    assert link is not None
    assert "deck=26000021;27000000;28000000;" in link


def test_resolve_owner_name():
    assert resolve_owner_name({"ownerName": "Ana", "player": {"name": "Bo"}}) == "Ana"
    assert resolve_owner_name({"player": {"name": "Bo"}, "playerTag": "#X"}) == "Bo"
    assert resolve_owner_name({"playerTag": "#X"}) == "#X"
    assert resolve_owner_name({}) is None


@pytest.mark.parametrize(
    "score, stars",
    [(8, 5.0), (0, 0.0), (4, 2.5), (0.8, 0.5), (6.6, 4.0), (7.0, 4.5), (12, 5.0), (-1, 0.0)],
)
def test_score_to_stars(score, stars):
    assert score_to_stars(score) == stars


@pytest.mark.parametrize("score", [None, float("nan"), float("inf"), "7", True])
def test_score_to_stars_non_numeric(score):
    assert score_to_stars(score) == 0.0


def test_oversized_ids_do_not_resolve():
    huge = 10**400
    assert resolve_card_id({"id": huge}) is None
    assert resolve_card_id({"id": huge, "clashId": 28000000}) == 28000000
    assert build_deck_link([{"id": huge}] * 8) is None
