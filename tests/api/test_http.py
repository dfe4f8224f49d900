"""
End-to-end tests for the HTTP routes, running the real application lifespan
against the test database with the offline embedding provider.
"""

import httpx
import pytest
import pytest_asyncio

from main import create_app


@pytest_asyncio.fixture
async def client(seed):
    app = create_app()
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/api/")
    assert response.status_code == 200
    assert "running" in response.json()["message"]


@pytest.mark.asyncio
async def test_embed_then_find_similar(client, seed):
    first = await seed.event("Hiked the Dolomites", "2022-07-01", "travel")
    second = await seed.event("Hiked the Dolomites", "2023-07-01", "travel")
    await seed.event("Bought a car", "2023-02-01", "other")

    response = await client.post(f"/api/embeddings/events/{first}")
    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["dimension"] == 384

    batch = (await client.post("/api/embeddings/generate-missing")).json()
    assert batch["total"] == 2
    assert batch["succeeded"] == 2
    assert batch["errors"] == []

    similar = (
        await client.post(
            f"/api/embeddings/events/{first}/similar", json={"threshold": 0.99, "limit": 5}
        )
    ).json()
    assert similar["success"] is True
    assert [e["event_id"] for e in similar["similar_events"]] == [second]
    assert similar["similar_events"][0]["title"] == "Hiked the Dolomites"


@pytest.mark.asyncio
async def test_domain_failures_are_payloads(client, seed):
    event_id = await seed.event("Never embedded")

    similar = await client.post(f"/api/embeddings/events/{event_id}/similar", json={})
    assert similar.status_code == 200
    assert similar.json()["error_type"] == "not_embedded"

    missing = (await client.post("/api/embeddings/events/no-such-event")).json()
    assert missing["success"] is False
    assert missing["error_type"] == "event_not_found"

    cancel = (await client.post("/api/analysis/cancel")).json()
    assert cancel["success"] is False
    assert cancel["error_type"] == "not_running"


@pytest.mark.asyncio
async def test_request_validation(client, seed):
    event_id = await seed.event("Anything")
    response = await client.post(
        f"/api/embeddings/events/{event_id}/similar", json={"threshold": 3}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_analysis_flow(client, seed):
    first = await seed.event("Moved to Lisbon", "2020-02-01", "travel")
    second = await seed.event("Moved to Lisbon", "2020-03-01", "travel")
    await client.post("/api/embeddings/generate-missing")

    analysis = (
        await client.post(f"/api/analysis/events/{first}", json={"threshold": 0.99})
    ).json()
    assert analysis["success"] is True
    assert analysis["cross_references"][0]["event_id_2"] == second
    assert analysis["cross_references"][0]["relationship_type"] == "thematic"

    run = (await client.post("/api/analysis/timeline", json={"threshold": 0.99})).json()
    assert run["total_events"] == 2
    assert run["events_processed"] == 2
    assert run["errors"] == []
    assert run["cancelled"] is False

    references = (await client.get(f"/api/events/{second}/cross-references")).json()
    assert len(references["cross_references"]) == 1
    assert references["cross_references"][0]["confidence_score"] == 0.6


@pytest.mark.asyncio
async def test_patterns_and_tag_suggestions(client, seed):
    ids = [
        await seed.event("Volunteer shift", f"2021-05-0{day}", "work")
        for day in (1, 2, 3)
    ]
    await seed.tag(ids[1], "community", 0.9)
    await client.post("/api/embeddings/generate-missing")

    patterns = (await client.get("/api/patterns")).json()
    types = [p["type"] for p in patterns["patterns"]]
    assert types == ["recurring_categories", "temporal_clusters"]

    suggestions = (
        await client.post(f"/api/events/{ids[0]}/tag-suggestions", json={"limit": 3})
    ).json()
    assert suggestions["success"] is True
    assert suggestions["suggestions"][0]["tag_name"] == "community"
    assert suggestions["suggestions"][0]["confidence"] == pytest.approx(0.45)


@pytest.mark.asyncio
async def test_event_created_hook_embeds(client, seed):
    event_id = await seed.event("Started pottery class", "2024-09-01", "other")

    result = (await client.post(f"/api/events/{event_id}/created")).json()

    assert result["success"] is True
    assert result["embedding_id"]


@pytest.mark.asyncio
async def test_switch_provider_and_clear(client, seed):
    event_id = await seed.event("Ran a half marathon", "2023-04-02", "achievement")

    rejected = (
        await client.put("/api/embeddings/provider", json={"provider": "word2vec", "model": "x"})
    ).json()
    assert rejected["success"] is False
    assert rejected["error_type"] == "unsupported_provider"

    switched = (
        await client.put(
            "/api/embeddings/provider",
            json={"provider": "openai", "model": "text-embedding-3-large"},
        )
    ).json()
    assert switched["success"] is True
    assert "3072" in switched["message"]

    unauthenticated = (await client.post(f"/api/embeddings/events/{event_id}")).json()
    assert unauthenticated["success"] is False
    assert unauthenticated["error_type"] == "provider_auth"

    cleared = (await client.delete("/api/embeddings")).json()
    assert cleared["success"] is True
