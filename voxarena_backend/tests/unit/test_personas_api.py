import uuid

import pytest

from voxarena_backend.services.llm_client import ChatCompletionsClient


@pytest.mark.asyncio
async def test_create_persona_generates_fallback_description(client):
    resp = await client.post("/api/personas", json={
        "name": "  Ada  ",
        "profession": "Mathematician",
        "debateApproach": ["Logical", "Evidence-driven"],
        "confidence": "14",
        "quirksText": "counts aloud; hums",
    })

    assert resp.status_code == 201
    persona = resp.json()
    assert persona["name"] == "Ada"
    assert persona["confidence"] == 10
    assert persona["quirks"] == ["counts aloud", "hums"]
    assert "Logical" in persona["description"]
    assert persona["taxonomyIds"] == []
    assert persona["universityId"] is None


@pytest.mark.asyncio
async def test_create_persona_keeps_supplied_description(client, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    async def fail_chat(*args, **kwargs):
        raise AssertionError("description was supplied")

    monkeypatch.setattr(ChatCompletionsClient, "chat", fail_chat)
    resp = await client.post("/api/personas", json={"name": "Ada", "description": "Handwritten."})
    assert resp.status_code == 201
    assert resp.json()["description"] == "Handwritten."


@pytest.mark.asyncio
async def test_create_persona_requires_name(client):
    resp = await client.post("/api/personas", json={"name": "   ", "profession": "Poet"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Name is required"}


@pytest.mark.asyncio
async def test_non_object_and_malformed_bodies_are_400(client):
    resp = await client.post("/api/personas", json=["Ada"])
    assert resp.status_code == 400
    assert "error" in resp.json()

    resp = await client.post(
        "/api/personas",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert "error" in resp.json()


@pytest.mark.asyncio
async def test_granular_fields_create_links_and_project_legacy_fields(client, create_term):
    harvard = await create_term("university", "Harvard")
    unicef = await create_term("organization", "UNICEF")
    south_asia = await create_term("culture", "South Asia")
    analytical = await create_term("archetype", "Analytical")

    resp = await client.post("/api/personas", json={
        "name": "Eliza",
        "universityId": harvard["id"],
        "employerId": unicef["id"],
        "cultureIds": [south_asia["id"]],
        "archetypeIds": [analytical["id"], analytical["id"]],
    })

    assert resp.status_code == 201
    persona = resp.json()
    assert sorted(persona["taxonomyIds"]) == sorted([harvard["id"], unicef["id"], south_asia["id"], analytical["id"]])
    assert persona["universityId"] == harvard["id"]
    assert persona["organizationId"] == unicef["id"]
    assert persona["employerId"] == unicef["id"]
    assert persona["cultureIds"] == [south_asia["id"]]
    linked_terms = {link["taxonomy"]["term"] for link in persona["taxonomies"]}
    assert linked_terms == {"Harvard", "UNICEF", "South Asia", "Analytical"}
    # generated description picks up the taxonomy terms
    assert "Harvard" in persona["description"]


@pytest.mark.asyncio
async def test_taxonomy_ids_override_granular_fields(client, create_term):
    oxford = await create_term("university", "Oxford")
    mit = await create_term("university", "MIT")

    resp = await client.post("/api/personas", json={
        "name": "Grace",
        "taxonomyIds": [mit["id"]],
        "universityId": oxford["id"],
    })

    assert resp.status_code == 201
    assert resp.json()["taxonomyIds"] == [mit["id"]]
    assert resp.json()["universityId"] == mit["id"]


@pytest.mark.asyncio
async def test_unknown_taxonomy_id_rejects_without_writing(client):
    resp = await client.post("/api/personas", json={"name": "Ghost", "taxonomyIds": [str(uuid.uuid4())]})
    assert resp.status_code == 400
    assert "Unknown taxonomy ids" in resp.json()["error"]

    listing = await client.get("/api/personas")
    assert listing.json() == []


@pytest.mark.asyncio
async def test_partial_update_leaves_other_fields_and_links(client, create_term, create_persona):
    stoic = await create_term("philosophy", "Stoic")
    persona = await create_persona("Marcus", profession="Emperor", taxonomyIds=[stoic["id"]])

    resp = await client.put(f"/api/personas/{persona['id']}", json={"tone": "Measured"})

    assert resp.status_code == 200
    updated = resp.json()
    assert updated["tone"] == "Measured"
    assert updated["profession"] == "Emperor"
    assert updated["name"] == "Marcus"
    assert updated["taxonomyIds"] == [stoic["id"]]
    assert updated["description"] == persona["description"]


@pytest.mark.asyncio
async def test_update_replaces_and_clears_links(client, create_term, create_persona):
    liberal = await create_term("political", "Liberal")
    stoic = await create_term("philosophy", "Stoic")
    persona = await create_persona("Iris", taxonomyIds=[liberal["id"]])

    resp = await client.put(f"/api/personas/{persona['id']}", json={"taxonomyIds": [liberal["id"], stoic["id"]]})
    assert sorted(resp.json()["taxonomyIds"]) == sorted([liberal["id"], stoic["id"]])

    resp = await client.put(f"/api/personas/{persona['id']}", json={"taxonomyIds": []})
    assert resp.json()["taxonomyIds"] == []


@pytest.mark.asyncio
async def test_update_with_blank_name_keeps_name(client, create_persona):
    persona = await create_persona("Zeno")
    resp = await client.put(f"/api/personas/{persona['id']}", json={"name": " ", "nickname": ""})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Zeno"
    assert resp.json()["nickname"] is None


@pytest.mark.asyncio
async def test_clearing_description_regenerates_it(client, create_persona):
    persona = await create_persona("Hypatia", debateApproach=["Socratic"])
    resp = await client.put(f"/api/personas/{persona['id']}", json={"description": ""})
    assert resp.status_code == 200
    assert "Socratic" in resp.json()["description"]


@pytest.mark.asyncio
async def test_regenerate_flag_and_endpoint_use_model_text(client, create_persona, monkeypatch):
    persona = await create_persona("Ada")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    async def fake_chat(self, model, messages, temperature=0.7, max_tokens=600):
        return {"choices": [{"message": {"content": "A fresh portrait."}}]}

    monkeypatch.setattr(ChatCompletionsClient, "chat", fake_chat)

    resp = await client.put(f"/api/personas/{persona['id']}", json={"regenerateDescription": True})
    assert resp.json()["description"] == "A fresh portrait."

    resp = await client.post(f"/api/personas/{persona['id']}/description")
    assert resp.status_code == 200
    assert resp.json()["description"] == "A fresh portrait."


@pytest.mark.asyncio
async def test_failed_model_call_never_fails_the_request(client, create_persona, monkeypatch):
    persona = await create_persona("Ada", profession="Mathematician")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    async def broken_chat(self, *args, **kwargs):
        raise RuntimeError("upstream down")

    monkeypatch.setattr(ChatCompletionsClient, "chat", broken_chat)

    resp = await client.post(f"/api/personas/{persona['id']}/description")
    assert resp.status_code == 200
    assert resp.json()["description"].startswith("Ada is a Mathematician.")


@pytest.mark.asyncio
async def test_get_missing_and_malformed_ids(client):
    resp = await client.get(f"/api/personas/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert "not found" in resp.json()["error"]

    resp = await client.get("/api/personas/not-a-uuid")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_list_personas_newest_first(client, create_persona):
    await create_persona("First")
    await create_persona("Second")
    names = [p["name"] for p in (await client.get("/api/personas")).json()]
    assert names == ["Second", "First"]


@pytest.mark.asyncio
async def test_delete_persona_in_use_is_conflict(client, create_persona):
    moderator = await create_persona("Mod")
    pro = await create_persona("Pro")
    con = await create_persona("Con")
    debate = (await client.post("/api/debates", json={
        "title": "Tax",
        "topic": "Flat tax?",
        "format": "structured",
        "participants": [
            {"personaId": moderator["id"], "role": "MODERATOR"},
            {"personaId": pro["id"], "role": "DEBATER"},
            {"personaId": con["id"], "role": "DEBATER"},
        ],
    })).json()

    resp = await client.delete(f"/api/personas/{pro['id']}")
    assert resp.status_code == 409
    assert "used in one or more debates" in resp.json()["error"]

    await client.delete(f"/api/debates/{debate['id']}")
    resp = await client.delete(f"/api/personas/{pro['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert (await client.get(f"/api/personas/{pro['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_persona_keeps_taxonomy_terms(client, create_term, create_persona):
    term = await create_term("accent", "Singlish")
    persona = await create_persona("Wei", taxonomyIds=[term["id"]])

    resp = await client.delete(f"/api/personas/{persona['id']}")
    assert resp.status_code == 200

    terms = (await client.get("/api/taxonomy/terms", params={"category": "accent"})).json()
    assert [t["term"] for t in terms["items"]] == ["Singlish"]


@pytest.mark.asyncio
async def test_description_endpoint_applies_model_overrides(client, create_persona, monkeypatch):
    persona = await create_persona("Ada")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("DESCRIPTION_LLM_MODEL", "env-model")
    monkeypatch.delenv("DESCRIPTION_LLM_TEMPERATURE", raising=False)
    monkeypatch.delenv("DESCRIPTION_LLM_MAX_TOKENS", raising=False)
    calls = []

    async def fake_chat(self, model, messages, temperature=0.7, max_tokens=600):
        calls.append({"model": model, "temperature": temperature, "max_tokens": max_tokens})
        return {"choices": [{"message": {"content": "Tuned portrait."}}]}

    monkeypatch.setattr(ChatCompletionsClient, "chat", fake_chat)

    resp = await client.post(
        f"/api/personas/{persona['id']}/description",
        json={"model": "tuned-model", "temperature": "0.2", "maxTokens": 200, "apiKey": "ignored"},
    )
    assert resp.status_code == 200
    assert resp.json()["description"] == "Tuned portrait."

    resp = await client.post(f"/api/personas/{persona['id']}/description")
    assert resp.status_code == 200

    assert calls == [
        {"model": "tuned-model", "temperature": 0.2, "max_tokens": 200},
        {"model": "env-model", "temperature": 0.7, "max_tokens": 600},
    ]
