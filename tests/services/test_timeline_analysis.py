import pytest

from memory_timeline.db_handlers import CrossReferenceDBHandler, EventEmbeddingDBHandler
from memory_timeline.errors import AnalysisAlreadyRunningError
from memory_timeline.services.relationship_classifier import RelationshipClassifier
from memory_timeline.services.similarity_search import SimilaritySearchEngine
from memory_timeline.services.timeline_analysis import (
    CancellationToken,
    TimelineAnalysisOrchestrator,
)


class CrashingClassifier(RelationshipClassifier):
    """Heuristic classifier that blows up whenever `crash_on` is the source event."""

    def __init__(self, crash_on: str):
        super().__init__(None)
        self.crash_on = crash_on

    async def classify(self, event_a, event_b):
        if event_a.event_id == self.crash_on:
            raise RuntimeError("classifier crashed")
        return await super().classify(event_a, event_b)


class CancellingClassifier(RelationshipClassifier):
    """Requests cancellation the first time it is asked anything."""

    def __init__(self):
        super().__init__(None)
        self.orchestrator = None

    async def classify(self, event_a, event_b):
        self.orchestrator.cancel()
        return await super().classify(event_a, event_b)


class ReentrantClassifier(RelationshipClassifier):
    """Tries to start a second full run from inside the first one."""

    def __init__(self):
        super().__init__(None)
        self.orchestrator = None
        self.raised = []
        self.still_running = []

    async def classify(self, event_a, event_b):
        try:
            await self.orchestrator.analyze_full_timeline(0.5)
        except AnalysisAlreadyRunningError as e:
            self.raised.append(e)
        self.still_running.append(self.orchestrator.is_running)
        return await super().classify(event_a, event_b)


def make_orchestrator(classifier=None):
    return TimelineAnalysisOrchestrator(
        SimilaritySearchEngine(),
        classifier or RelationshipClassifier(None),
        candidate_limit=20,
        delay_seconds=0,
    )


async def _embed(event_id, vector):
    await EventEmbeddingDBHandler().upsert_embedding(
        event_id, vector, "fake", f"fake-{len(vector)}", len(vector)
    )


@pytest.mark.asyncio
async def test_analyze_event_keeps_only_related_candidates(seed):
    source = await seed.event("Backpacking in Peru", "2019-03-01", "travel")
    related = await seed.event("Road trip in Chile", "2021-11-20", "travel")
    unrelated = await seed.event("Promotion", "2015-01-01", "work")
    for event_id in (source, related, unrelated):
        await _embed(event_id, [1.0, 0.0])
    orchestrator = make_orchestrator()

    result = await orchestrator.analyze_event(source, threshold=0.5)

    assert result.success
    assert [ref.event_id_2 for ref in result.cross_references] == [related]
    reference = result.cross_references[0]
    assert reference.relationship_type == "thematic"
    assert reference.confidence_score == 0.6
    assert reference.similarity_score == pytest.approx(1.0)
    assert await CrossReferenceDBHandler().count() == 0


@pytest.mark.asyncio
async def test_analyze_event_without_candidates_is_not_an_error(seed):
    source = await seed.event("Lonely", "2020-01-01")
    far = await seed.event("Far away", "2020-01-02")
    await _embed(source, [1.0, 0.0])
    await _embed(far, [0.0, 1.0])

    result = await make_orchestrator().analyze_event(source, threshold=0.9)

    assert result.success
    assert result.cross_references == []
    assert result.message == "No similar events found"


@pytest.mark.asyncio
async def test_analyze_event_not_embedded(seed):
    source = await seed.event("Unembedded")

    result = await make_orchestrator().analyze_event(source, threshold=0.5)

    assert not result.success
    assert result.error_type == "not_embedded"


@pytest.mark.asyncio
async def test_heuristic_date_scenario(seed):
    day1 = await seed.event("Day one", "2024-01-01", "other")
    day10 = await seed.event("Day ten", "2024-01-10", "other")
    day40 = await seed.event("Day forty", "2024-02-09", "other")
    for event_id in (day1, day10, day40):
        await _embed(event_id, [1.0, 0.0])

    run = await make_orchestrator().analyze_full_timeline(threshold=0.5)

    assert run.errors == []
    store = CrossReferenceDBHandler()
    assert (await store.get_pair(day1, day10)).relationship_type == "temporal"
    assert await store.get_pair(day1, day40) is None
    # 30 days apart sits on the inclusive boundary
    assert (await store.get_pair(day10, day40)).relationship_type == "temporal"


@pytest.mark.asyncio
async def test_full_timeline_survives_a_failing_event(seed):
    first = await seed.event("Surf lessons", "2020-06-01", "travel")
    second = await seed.event("Ski trip", "2021-02-01", "travel")
    broken = await seed.event("Diving course", "2022-08-01", "travel")
    unembedded = await seed.event("Not embedded", "2022-08-02", "travel")
    for event_id in (first, second, broken):
        await _embed(event_id, [1.0, 0.0])
    orchestrator = make_orchestrator(CrashingClassifier(crash_on=broken))

    run = await orchestrator.analyze_full_timeline(threshold=0.5)

    assert run.success
    assert run.total_events == 3
    assert run.events_processed == 3
    assert [error.event_id for error in run.errors] == [broken]
    assert "classifier crashed" in run.errors[0].error
    assert run.cross_references_found == 4

    store = CrossReferenceDBHandler()
    assert await store.count() == 3
    assert await store.get_pair(first, second) is not None
    assert await store.get_pair(broken, first) is not None
    assert await store.get_pair(broken, second) is not None
    assert await store.get_for_event(unembedded) == []


@pytest.mark.asyncio
async def test_full_timeline_rerun_is_idempotent(seed):
    first = await seed.event("A", "2020-01-01", "work")
    second = await seed.event("B", "2020-01-05", "work")
    for event_id in (first, second):
        await _embed(event_id, [1.0, 0.0])
    orchestrator = make_orchestrator()

    await orchestrator.analyze_full_timeline(threshold=0.5)
    reference_id = (await CrossReferenceDBHandler().get_pair(first, second)).reference_id
    await orchestrator.analyze_full_timeline(threshold=0.5)

    assert await CrossReferenceDBHandler().count() == 1
    assert (await CrossReferenceDBHandler().get_pair(second, first)).reference_id == reference_id


@pytest.mark.asyncio
async def test_cancelled_token_stops_before_first_event(seed):
    for title in ("A", "B"):
        await _embed(await seed.event(title, "2020-01-01", "work"), [1.0, 0.0])
    token = CancellationToken()
    token.cancel()

    run = await make_orchestrator().analyze_full_timeline(0.5, cancel_token=token)

    assert run.cancelled
    assert run.events_processed == 0
    assert run.total_events == 2
    assert await CrossReferenceDBHandler().count() == 0


@pytest.mark.asyncio
async def test_cancel_during_run_finishes_current_event_only(seed):
    for title in ("A", "B", "C"):
        await _embed(await seed.event(title, "2020-01-01", "work"), [1.0, 0.0])
    classifier = CancellingClassifier()
    orchestrator = make_orchestrator(classifier)
    classifier.orchestrator = orchestrator

    assert orchestrator.cancel() is False
    run = await orchestrator.analyze_full_timeline(0.5)

    assert run.cancelled
    assert run.events_processed == 1
    assert run.cross_references_found == 2
    assert run.message == "Analysis cancelled"
    assert not orchestrator.is_running


@pytest.mark.asyncio
async def test_concurrent_full_timeline_run_is_rejected(seed):
    for title in ("A", "B"):
        await _embed(await seed.event(title, "2020-01-01", "work"), [1.0, 0.0])
    classifier = ReentrantClassifier()
    orchestrator = make_orchestrator(classifier)
    classifier.orchestrator = orchestrator

    run = await orchestrator.analyze_full_timeline(0.5)

    assert run.errors == []
    assert len(classifier.raised) == 2
    assert all(e.error_type == "already_running" for e in classifier.raised)
    assert classifier.still_running == [True, True]
    assert not orchestrator.is_running
    assert orchestrator.cancel() is False


@pytest.mark.asyncio
async def test_non_finite_llm_confidence_is_stored_from_heuristic(seed, fake_llm_factory):
    first = await seed.event("Surf lessons", "2020-06-01", "travel")
    second = await seed.event("Ski trip", "2021-02-01", "travel")
    for event_id in (first, second):
        await _embed(event_id, [1.0, 0.0])
    client = fake_llm_factory(
        '{"hasRelationship": true, "type": "causal", "confidence": NaN, "explanation": "x"}'
    )
    orchestrator = make_orchestrator(RelationshipClassifier(client))

    run = await orchestrator.analyze_full_timeline(threshold=0.5)

    assert run.errors == []
    assert run.cross_references_found == 2
    stored = await CrossReferenceDBHandler().get_pair(first, second)
    assert stored.relationship_type == "thematic"
    assert stored.confidence_score == pytest.approx(0.6)


@pytest.mark.asyncio
async def test_get_cross_references(seed):
    first = await seed.event("Wedding", "2021-06-12", "relationship")
    second = await seed.event("Honeymoon", "2021-06-20", "travel")
    await CrossReferenceDBHandler().upsert(second, first, "causal", 0.9, "trip after wedding")
    orchestrator = make_orchestrator()

    result = await orchestrator.get_cross_references(first)

    assert result.success
    assert len(result.cross_references) == 1
    detail = result.cross_references[0]
    assert detail.relationship_type == "causal"
    assert {detail.event1_title, detail.event2_title} == {"Wedding", "Honeymoon"}
    assert detail.discovered_at is not None

    missing = await orchestrator.get_cross_references("no-such-event")
    assert not missing.success
    assert missing.error_type == "event_not_found"
