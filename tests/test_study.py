import random

from app.services.study_service import fisher_yates_shuffle


def _seed_deck(c, user, n):
    deck = c.post("/decks", json={"name": "geo"}, headers=user.headers).json()
    for i in range(n):
        c.post(
            f"/decks/{deck['public_id']}/cards",
            json={"front": f"Q{i}", "back": f"A{i}"},
            headers=user.headers,
        )
    return deck


def test_fisher_yates_returns_permutation_without_mutating_input():
    items = list(range(20))
    shuffled = fisher_yates_shuffle(items, random.Random(7))
    assert items == list(range(20))
    assert sorted(shuffled) == items
    assert shuffled != items


def test_fisher_yates_is_reproducible_with_seed():
    items = ["a", "b", "c", "d", "e", "f"]
    assert fisher_yates_shuffle(items, random.Random(3)) == fisher_yates_shuffle(items, random.Random(3))


def test_fisher_yates_handles_tiny_inputs():
    assert fisher_yates_shuffle([], random.Random(1)) == []
    assert fisher_yates_shuffle(["only"], random.Random(1)) == ["only"]


def test_study_session_in_deck_order(app_client, free_user):
    c = app_client
    deck = _seed_deck(c, free_user, 3)
    r = c.get(f"/decks/{deck['public_id']}/study", headers=free_user.headers)
    assert r.status_code == 200
    session = r.json()
    assert session["shuffled"] is False
    assert session["total"] == 3
    assert session["deck_name"] == "geo"
    assert [card["front"] for card in session["cards"]] == ["Q2", "Q1", "Q0"]


def test_study_session_shuffled_with_seed(app_client, free_user):
    c = app_client
    deck = _seed_deck(c, free_user, 10)
    url = f"/decks/{deck['public_id']}/study"
    first = c.get(url, params={"shuffle": True, "seed": 42}, headers=free_user.headers).json()
    second = c.get(url, params={"shuffle": True, "seed": 42}, headers=free_user.headers).json()
    assert first["shuffled"] is True
    assert first["cards"] == second["cards"]
    assert sorted(card["front"] for card in first["cards"]) == sorted(f"Q{i}" for i in range(10))


def test_study_empty_deck(app_client, free_user):
    c = app_client
    deck = c.post("/decks", json={"name": "empty"}, headers=free_user.headers).json()
    session = c.get(
        f"/decks/{deck['public_id']}/study", params={"shuffle": True}, headers=free_user.headers
    ).json()
    assert session["total"] == 0
    assert session["cards"] == []


def test_study_requires_owned_deck(app_client, free_user, other_user):
    c = app_client
    deck = _seed_deck(c, free_user, 1)
    r = c.get(f"/decks/{deck['public_id']}/study", headers=other_user.headers)
    assert r.status_code == 404
