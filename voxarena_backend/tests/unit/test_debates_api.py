import uuid

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def cast(create_persona):
    """Four personas to seat in debates."""
    return [await create_persona(name) for name in ("Mod", "Pro", "Con", "Guest")]


def _structured_roster(cast):
    return [
        {"personaId": cast[0]["id"], "role": "MODERATOR"},
        {"personaId": cast[1]["id"], "role": "DEBATER"},
        {"personaId": cast[2]["id"], "role": "DEBATER"},
    ]


@pytest.mark.asyncio
async def test_create_structured_debate_with_defaults(client, cast):
    resp = await client.post("/api/debates", json={
        "title": "Universal basic income",
        "topic": "Should UBI replace welfare?",
        "format": "structured",
        "participants": _structured_roster(cast),
    })

    assert resp.status_code == 201
    debate = resp.json()
    assert debate["status"] == "DRAFT"
    assert debate["config"]["rounds"] == 3
    assert [p["role"] for p in debate["participants"]] == ["MODERATOR", "DEBATER", "DEBATER"]
    assert [p["orderIndex"] for p in debate["participants"]] == [0, 1, 2]
    assert debate["participants"][0]["persona"]["name"] == "Mod"


@pytest.mark.asyncio
async def test_create_debate_without_participants(client):
    resp = await client.post("/api/debates", json={"title": "Open", "topic": "Anything", "format": "podcast"})
    assert resp.status_code == 201
    assert resp.json()["participants"] == []
    assert resp.json()["config"]["segments"] == 3


@pytest.mark.asyncio
async def test_structured_debate_needs_two_debaters(client, cast):
    resp = await client.post("/api/debates", json={
        "title": "Short",
        "topic": "Too few",
        "format": "structured",
        "participants": _structured_roster(cast)[:2],
    })

    assert resp.status_code == 400
    assert "at least 2 debaters" in resp.json()["error"]
    assert (await client.get("/api/debates")).json() == []


@pytest.mark.asyncio
async def test_unknown_role_rejects_whole_roster(client, cast):
    roster = _structured_roster(cast)
    roster.append({"personaId": cast[3]["id"], "role": "JUDGE"})
    resp = await client.post("/api/debates", json={
        "title": "Judged",
        "topic": "x",
        "format": "structured",
        "participants": roster,
    })
    assert resp.status_code == 400
    assert "invalid role" in resp.json()["error"]
    assert (await client.get("/api/debates")).json() == []


@pytest.mark.asyncio
async def test_update_with_only_invalid_roles_changes_nothing(client, cast):
    debate = (await client.post("/api/debates", json={
        "title": "Original",
        "topic": "x",
        "format": "structured",
        "participants": _structured_roster(cast),
    })).json()

    resp = await client.put(f"/api/debates/{debate['id']}", json={
        "title": "Changed",
        "participants": [
            {"personaId": cast[0]["id"], "role": "JUDGE"},
            {"personaId": cast[1]["id"], "role": "PANELIST"},
        ],
    })
    assert resp.status_code == 400

    reloaded = (await client.get(f"/api/debates/{debate['id']}")).json()
    assert reloaded["title"] == "Original"
    assert [p["role"] for p in reloaded["participants"]] == ["MODERATOR", "DEBATER", "DEBATER"]


@pytest.mark.asyncio
async def test_update_with_short_roster_keeps_title_and_roster(client, cast):
    debate = (await client.post("/api/debates", json={
        "title": "Original",
        "topic": "x",
        "format": "structured",
        "participants": _structured_roster(cast),
    })).json()

    resp = await client.put(f"/api/debates/{debate['id']}", json={
        "title": "Changed",
        "participants": _structured_roster(cast)[:2],
    })
    assert resp.status_code == 400
    assert "at least 2 debaters" in resp.json()["error"]

    reloaded = (await client.get(f"/api/debates/{debate['id']}")).json()
    assert reloaded["title"] == "Original"
    assert [p["personaId"] for p in reloaded["participants"]] == [c["id"] for c in cast[:3]]


@pytest.mark.asyncio
async def test_podcast_order_follows_submitted_order(client, cast):
    resp = await client.post("/api/debates", json={
        "title": "Pod",
        "topic": "Cities",
        "format": "podcast",
        "participants": [
            {"personaId": cast[0]["id"], "role": "HOST", "order": 1},
            {"personaId": cast[3]["id"], "role": "GUEST", "order": 0, "displayName": "The Guest"},
        ],
    })

    assert resp.status_code == 201
    participants = resp.json()["participants"]
    assert [p["role"] for p in participants] == ["GUEST", "HOST"]
    assert participants[0]["displayName"] == "The Guest"


@pytest.mark.asyncio
async def test_unknown_persona_rejected(client, cast):
    roster = _structured_roster(cast)
    roster[1]["personaId"] = str(uuid.uuid4())
    resp = await client.post("/api/debates", json={
        "title": "Ghost",
        "topic": "x",
        "format": "structured",
        "participants": roster,
    })
    assert resp.status_code == 400
    assert "Unknown persona ids" in resp.json()["error"]


@pytest.mark.asyncio
async def test_create_debate_requires_title_topic_format(client):
    resp = await client.post("/api/debates", json={"topic": "x", "format": "structured"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Title is required"}

    resp = await client.post("/api/debates", json={"title": "t", "topic": "x", "format": "panel"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_with_empty_participants_keeps_roster(client, cast):
    debate = (await client.post("/api/debates", json={
        "title": "Keep",
        "topic": "x",
        "format": "structured",
        "participants": _structured_roster(cast),
    })).json()

    resp = await client.put(f"/api/debates/{debate['id']}", json={"title": "Renamed", "participants": []})

    assert resp.status_code == 200
    assert resp.json()["title"] == "Renamed"
    assert len(resp.json()["participants"]) == 3


@pytest.mark.asyncio
async def test_update_replaces_roster_and_checks_new_format(client, cast):
    debate = (await client.post("/api/debates", json={
        "title": "Switch",
        "topic": "x",
        "format": "structured",
        "participants": _structured_roster(cast),
    })).json()

    # structured roster can't run as a podcast
    resp = await client.put(f"/api/debates/{debate['id']}", json={
        "format": "podcast",
        "participants": _structured_roster(cast),
    })
    assert resp.status_code == 400

    resp = await client.put(f"/api/debates/{debate['id']}", json={
        "format": "podcast",
        "participants": [
            {"personaId": cast[0]["id"], "role": "HOST"},
            {"personaId": cast[3]["id"], "role": "GUEST"},
        ],
    })
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["format"] == "podcast"
    assert [p["personaId"] for p in updated["participants"]] == [cast[0]["id"], cast[3]["id"]]


@pytest.mark.asyncio
async def test_status_moves_forward_only(client):
    debate = (await client.post("/api/debates", json={"title": "S", "topic": "x", "format": "podcast"})).json()

    resp = await client.put(f"/api/debates/{debate['id']}", json={"status": "active"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "ACTIVE"

    resp = await client.put(f"/api/debates/{debate['id']}", json={"status": "ACTIVE"})
    assert resp.status_code == 200

    resp = await client.put(f"/api/debates/{debate['id']}", json={"status": "DRAFT"})
    assert resp.status_code == 400
    assert (await client.get(f"/api/debates/{debate['id']}")).json()["status"] == "ACTIVE"


@pytest.mark.asyncio
async def test_list_filters_by_status_and_format(client):
    await client.post("/api/debates", json={"title": "A", "topic": "x", "format": "podcast"})
    await client.post("/api/debates", json={"title": "B", "topic": "x", "format": "structured", "status": "ACTIVE"})

    by_format = (await client.get("/api/debates", params={"format": "podcast"})).json()
    assert [d["title"] for d in by_format] == ["A"]

    by_status = (await client.get("/api/debates", params={"status": "active"})).json()
    assert [d["title"] for d in by_status] == ["B"]

    everything = (await client.get("/api/debates")).json()
    assert [d["title"] for d in everything] == ["B", "A"]


@pytest.mark.asyncio
async def test_delete_debate_keeps_personas(client, cast):
    debate = (await client.post("/api/debates", json={
        "title": "Gone",
        "topic": "x",
        "format": "structured",
        "participants": _structured_roster(cast),
    })).json()

    resp = await client.delete(f"/api/debates/{debate['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert (await client.get(f"/api/debates/{debate['id']}")).status_code == 404
    assert len((await client.get("/api/personas")).json()) == 4


@pytest.mark.asyncio
async def test_missing_debate_is_404(client):
    assert (await client.put(f"/api/debates/{uuid.uuid4()}", json={"title": "x"})).status_code == 404
    assert (await client.delete(f"/api/debates/{uuid.uuid4()}")).status_code == 404
