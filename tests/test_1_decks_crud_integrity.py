# tests/test_1_decks_crud_integrity.py
from datetime import timedelta

import api


def test_create_deck_ok(app_client, free_user):
    c = app_client
    r = c.post(
        "/decks",
        json={"name": "  Spanish Vocabulary ", "description": "Common travel phrases"},
        headers=free_user.headers,
    )
    assert r.status_code == 201
    created = r.json()
    assert created["name"] == "Spanish Vocabulary"
    assert created["description"] == "Common travel phrases"
    assert created["card_count"] == 0
    assert created["created_at"] == created["updated_at"]


def test_create_deck_empty_name(app_client, free_user):
    c = app_client
    r = c.post("/decks", json={"name": ""}, headers=free_user.headers)
    assert r.status_code in (400, 422)
    r2 = c.post("/decks", json={"name": "   "}, headers=free_user.headers)
    assert r2.status_code == 400


def test_free_plan_is_limited_to_three_decks(app_client, free_user):
    c = app_client
    for name in ("geo", "hist", "bio"):
        assert c.post("/decks", json={"name": name}, headers=free_user.headers).status_code == 201
    r = c.post("/decks", json={"name": "chem"}, headers=free_user.headers)
    assert r.status_code == 403
    assert "maximum number of decks (3)" in r.json()["detail"]


def test_pro_plan_has_unlimited_decks(app_client, pro_user):
    c = app_client
    for i in range(5):
        r = c.post("/decks", json={"name": f"topic {i}"}, headers=pro_user.headers)
        assert r.status_code == 201
    assert len(c.get("/decks", headers=pro_user.headers).json()) == 5


def test_list_decks_newest_first_with_counts(app_client, pro_user, fixed_now, monkeypatch):
    c = app_client
    old = c.post("/decks", json={"name": "old"}, headers=pro_user.headers).json()
    monkeypatch.setattr(api, "utc_now", lambda: fixed_now + timedelta(minutes=30))
    new = c.post("/decks", json={"name": "new"}, headers=pro_user.headers).json()
    c.post(f"/decks/{old['public_id']}/cards", json={"front": "Q", "back": "A"}, headers=pro_user.headers)

    decks = c.get("/decks", headers=pro_user.headers).json()
    assert [d["public_id"] for d in decks] == [new["public_id"], old["public_id"]]
    assert decks[1]["card_count"] == 1
    assert decks[0]["card_count"] == 0


def test_update_deck_partial(app_client, pro_user, fixed_now, monkeypatch):
    c = app_client
    deck = c.post(
        "/decks", json={"name": "geo", "description": "capitals"}, headers=pro_user.headers
    ).json()
    later = fixed_now + timedelta(minutes=5)
    monkeypatch.setattr(api, "utc_now", lambda: later)

    r = c.patch(f"/decks/{deck['public_id']}", json={"name": "geografia"}, headers=pro_user.headers)
    assert r.status_code == 200
    updated = r.json()
    assert updated["name"] == "geografia"
    assert updated["description"] == "capitals"
    assert updated["updated_at"] == later.isoformat(timespec="seconds")

    r2 = c.patch(f"/decks/{deck['public_id']}", json={"description": ""}, headers=pro_user.headers)
    assert r2.status_code == 200
    assert r2.json()["description"] is None
    assert r2.json()["name"] == "geografia"


def test_get_deck_detail_lists_cards(app_client, pro_user):
    c = app_client
    deck = c.post("/decks", json={"name": "geo"}, headers=pro_user.headers).json()
    c.post(f"/decks/{deck['public_id']}/cards", json={"front": "Q1", "back": "A1"}, headers=pro_user.headers)
    c.post(f"/decks/{deck['public_id']}/cards", json={"front": "Q2", "back": "A2"}, headers=pro_user.headers)

    r = c.get(f"/decks/{deck['public_id']}", headers=pro_user.headers)
    assert r.status_code == 200
    detail = r.json()
    assert detail["card_count"] == 2
    assert [card["front"] for card in detail["cards"]] == ["Q2", "Q1"]


def test_delete_deck_removes_cards(app_client, pro_user):
    c = app_client
    deck = c.post("/decks", json={"name": "geo"}, headers=pro_user.headers).json()
    card = c.post(
        f"/decks/{deck['public_id']}/cards", json={"front": "Q", "back": "A"}, headers=pro_user.headers
    ).json()
    r = c.delete(f"/decks/{deck['public_id']}", headers=pro_user.headers)
    assert r.status_code == 204
    assert c.get(f"/decks/{deck['public_id']}", headers=pro_user.headers).status_code == 404
    assert c.get(f"/cards/{card['public_id']}", headers=pro_user.headers).status_code == 404


def test_decks_are_isolated_between_users(app_client, pro_user, other_user):
    c = app_client
    deck = c.post("/decks", json={"name": "private"}, headers=pro_user.headers).json()
    deck_id = deck["public_id"]

    assert c.get("/decks", headers=other_user.headers).json() == []
    assert c.get(f"/decks/{deck_id}", headers=other_user.headers).status_code == 404
    assert c.patch(f"/decks/{deck_id}", json={"name": "mine"}, headers=other_user.headers).status_code == 404
    assert c.delete(f"/decks/{deck_id}", headers=other_user.headers).status_code == 404
    assert c.get(f"/decks/{deck_id}", headers=pro_user.headers).json()["name"] == "private"


def test_ai_eligibility_reports_gate_verdict(app_client, pro_user):
    c = app_client
    bad = c.post("/decks", json={"name": "Fourth Deck", "description": "..."}, headers=pro_user.headers).json()
    good = c.post(
        "/decks",
        json={"name": "AWS", "description": "Key AWS services and what they do."},
        headers=pro_user.headers,
    ).json()

    r_bad = c.get(f"/decks/{bad['public_id']}/ai-eligibility", headers=pro_user.headers).json()
    assert r_bad["accepted"] is False
    assert "generic pattern" in r_bad["reason"]

    r_good = c.get(f"/decks/{good['public_id']}/ai-eligibility", headers=pro_user.headers).json()
    assert r_good == {"accepted": True, "reason": None}


def test_whitespace_description_is_stored_as_given(app_client, pro_user):
    c = app_client
    deck = c.post("/decks", json={"name": "Astronomy", "description": "   "}, headers=pro_user.headers).json()
    assert deck["description"] == "   "

    r = c.get(f"/decks/{deck['public_id']}/ai-eligibility", headers=pro_user.headers).json()
    assert r == {"accepted": False, "reason": "Deck description must be at least 12 characters long."}

    padded = c.patch(
        f"/decks/{deck['public_id']}",
        json={"description": "  Planets and moons  "},
        headers=pro_user.headers,
    ).json()
    assert padded["description"] == "  Planets and moons  "
