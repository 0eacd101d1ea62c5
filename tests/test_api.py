from datetime import timedelta

from sqlalchemy.exc import OperationalError

from findr.core.security import create_access_token
from findr.services import match_resolver


PROFILE = {
    "bio": "Designer who ships",
    "role": "non-technical",
    "skills": ["figma"],
    "looking_for": ["backend"],
    "project_ideas": ["habit tracker"],
}


async def test_requires_bearer_token(client):
    response = await client.get("/api/v1/matching/matches")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


async def test_rejects_expired_token(client, make_user):
    user = await make_user(name="Dev")
    token = create_access_token({"sub": user.id}, expires_delta=timedelta(minutes=-1))

    response = await client.get(
        "/api/v1/profiles/me", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401


async def test_profile_lifecycle(client, make_user, auth_headers):
    user = await make_user(name="Dev")
    headers = auth_headers(user)

    missing = await client.get("/api/v1/profiles/me", headers=headers)
    assert missing.status_code == 404

    created = await client.put("/api/v1/profiles/me", json=PROFILE, headers=headers)
    assert created.status_code == 200
    body = created.json()
    assert body["user_id"] == user.id
    assert body["commitment"] == "flexible"
    assert body["project_ideas"] == ["habit tracker"]

    paused = await client.patch("/api/v1/profiles/me/active", json={"is_active": False}, headers=headers)
    assert paused.status_code == 200
    assert paused.json()["is_active"] is False

    ping = await client.post("/api/v1/profiles/me/ping", headers=headers)
    assert ping.status_code == 204


async def test_profile_validation_error(client, make_user, auth_headers):
    user = await make_user(name="Dev")

    response = await client.put(
        "/api/v1/profiles/me",
        json={**PROFILE, "bio": "x" * 300},
        headers=auth_headers(user),
    )

    assert response.status_code == 422


async def test_view_other_profile(client, make_user, make_profile, auth_headers):
    me = await make_user(name="Me")
    other = await make_user(name="Other", username="other", house="phoenix")
    await make_profile(other)

    response = await client.get(f"/api/v1/profiles/{other.id}", headers=auth_headers(me))

    assert response.status_code == 200
    assert response.json()["user"]["username"] == "other"
    assert response.json()["user"]["house"] == "phoenix"


async def test_swipe_and_match_flow(client, make_user, make_profile, auth_headers):
    alice = await make_user(name="alice", username="alice")
    bob = await make_user(name="bob", username="bob")
    await make_profile(alice, github_score=5)
    await make_profile(bob, github_score=9)

    deck = await client.get("/api/v1/matching/discover", headers=auth_headers(alice))
    assert deck.status_code == 200
    assert [p["user_id"] for p in deck.json()["profiles"]] == [bob.id]

    first = await client.post(
        "/api/v1/matching/swipe",
        json={"target_id": bob.id, "action": "like"},
        headers=auth_headers(alice),
    )
    assert first.json() == {"success": True, "is_match": False, "match_id": None}

    second = await client.post(
        "/api/v1/matching/swipe",
        json={"target_id": alice.id, "action": "like"},
        headers=auth_headers(bob),
    )
    assert second.json()["is_match"] is True
    match_id = second.json()["match_id"]

    deck = await client.get("/api/v1/matching/discover", headers=auth_headers(alice))
    assert deck.json()["profiles"] == []

    await client.post("/api/v1/profiles/me/ping", headers=auth_headers(bob))

    matches = await client.get("/api/v1/matching/matches", headers=auth_headers(alice))
    assert matches.json()["total"] == 1
    entry = matches.json()["matches"][0]
    assert entry["match"]["id"] == match_id
    assert entry["matched_user"]["username"] == "bob"
    assert entry["matched_profile"]["github_score"] == 9
    assert entry["is_online"] is True

    single = await client.get(f"/api/v1/matching/matches/{match_id}", headers=auth_headers(bob))
    assert single.status_code == 200
    assert single.json()["matched_user"]["id"] == alice.id
    assert single.json()["is_online"] is False

    ended = await client.delete(f"/api/v1/matching/matches/{match_id}", headers=auth_headers(bob))
    assert ended.json() == {"success": True}

    matches = await client.get("/api/v1/matching/matches", headers=auth_headers(alice))
    assert matches.json()["total"] == 0


async def test_self_swipe_is_bad_request(client, make_user, auth_headers):
    me = await make_user(name="Me")

    response = await client.post(
        "/api/v1/matching/swipe",
        json={"target_id": me.id, "action": "like"},
        headers=auth_headers(me),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot swipe on yourself"


async def test_invalid_swipe_action(client, make_user, auth_headers):
    me = await make_user(name="Me")
    other = await make_user(name="Other")

    response = await client.post(
        "/api/v1/matching/swipe",
        json={"target_id": other.id, "action": "superlike"},
        headers=auth_headers(me),
    )

    assert response.status_code == 422


async def test_unmatch_by_outsider(client, make_user, auth_headers):
    alice = await make_user(name="alice")
    bob = await make_user(name="bob")
    carol = await make_user(name="carol")
    await client.post(
        "/api/v1/matching/swipe", json={"target_id": bob.id, "action": "like"}, headers=auth_headers(alice)
    )
    result = await client.post(
        "/api/v1/matching/swipe", json={"target_id": alice.id, "action": "like"}, headers=auth_headers(bob)
    )
    match_id = result.json()["match_id"]

    response = await client.delete(f"/api/v1/matching/matches/{match_id}", headers=auth_headers(carol))

    assert response.status_code == 400
    assert response.json()["detail"] == "You are not part of this match"


async def test_discover_limit_bounds(client, make_user, auth_headers):
    me = await make_user(name="Me")

    response = await client.get("/api/v1/matching/discover?limit=0", headers=auth_headers(me))

    assert response.status_code == 422


async def test_security_headers(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in response.headers


async def test_storage_error_returns_generic_500(client, make_user, auth_headers, monkeypatch):
    alice = await make_user(name="alice")
    bob = await make_user(name="bob")

    async def broken_lookup(db, swiper_id, target_id):
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    monkeypatch.setattr(match_resolver, "has_positive_swipe", broken_lookup)

    response = await client.post(
        "/api/v1/matching/swipe",
        json={"target_id": bob.id, "action": "like"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 500
    assert response.json() == {"detail": "Something went wrong. Please try again."}
