# tests/test_api_robustness.py
def test_health_and_common_errors(app_client, free_user):
    c = app_client

    # /health
    r = c.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    # unknown deck
    assert c.get("/decks/nope", headers=free_user.headers).status_code == 404
    assert c.get("/decks/nope/study", headers=free_user.headers).status_code == 404
    assert c.get("/decks/nope/ai-eligibility", headers=free_user.headers).status_code == 404

    deck = c.post("/decks", json={"name": "geo"}, headers=free_user.headers).json()
    r3 = c.post(
        f"/decks/{deck['public_id']}/cards", json={"front": "Q", "back": "A"}, headers=free_user.headers
    )
    assert r3.status_code == 201
    card = r3.json()

    # unknown card
    r4 = c.get("/cards/00000000-0000-0000-0000-000000000000", headers=free_user.headers)
    assert r4.status_code == 404

    # invalid payloads
    r5 = c.patch(f"/cards/{card['public_id']}", json={"front": "Q"}, headers=free_user.headers)
    assert r5.status_code == 422
    r6 = c.post("/decks", json={"name": "x" * 256}, headers=free_user.headers)
    assert r6.status_code == 422


def test_token_for_deleted_user_cannot_create_decks(app_client, free_user):
    from app.db import db_manager

    with db_manager.connect() as connection:
        connection.execute("DELETE FROM users WHERE public_id=?", (free_user.id,))
    r = app_client.post("/decks", json={"name": "geo"}, headers=free_user.headers)
    assert r.status_code == 404
