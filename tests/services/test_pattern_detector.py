import pytest

from memory_timeline.services.pattern_detector import PatternDetector


@pytest.mark.asyncio
async def test_empty_timeline_has_no_pattern_groups(seed):
    result = await PatternDetector().detect_patterns()
    assert result.success
    assert result.patterns == []


@pytest.mark.asyncio
async def test_detects_all_three_groups(seed):
    college = await seed.era("College", "2010-09-01", end_date="2014-06-01")
    for day in ("03", "10", "17", "24"):
        await seed.event(f"Shift {day}", f"2012-03-{day}", "work")
    for month in ("01", "05", "09"):
        await seed.event(f"Trip {month}", f"2013-{month}-15", "travel")
    for day in ("01", "02", "03"):
        await seed.event(f"Misc {day}", f"2011-07-{day}", "other")
    await seed.event("Graduated", "2014-05-30", "milestone", era_id=college)
    await seed.event("Failed midterm", "2011-10-12", "challenge", era_id=college)
    await seed.event("Won award", "2016-01-01", "achievement")

    result = await PatternDetector().detect_patterns()
    groups = {group.type: group for group in result.patterns}

    assert list(groups) == ["recurring_categories", "temporal_clusters", "era_transitions"]

    recurring = groups["recurring_categories"]
    assert recurring.description == "Events that occur repeatedly in certain categories"
    assert recurring.matches == [
        {"category": "work", "count": 4},
        {"category": "travel", "count": 3},
    ]

    clusters = groups["temporal_clusters"].matches
    assert clusters == [
        {"month": "2012-03", "event_count": 4},
        {"month": "2011-07", "event_count": 3},
    ]

    transitions = groups["era_transitions"].matches
    assert [t["title"] for t in transitions] == ["Failed midterm", "Graduated"]
    assert all(t["era_name"] == "College" for t in transitions)


@pytest.mark.asyncio
async def test_temporal_clusters_are_capped_at_ten(seed):
    for month in range(1, 13):
        for day in ("01", "02", "03"):
            await seed.event(f"Event {month}-{day}", f"2020-{month:02d}-{day}", "other")

    clusters = await PatternDetector().detect_temporal_clusters()

    assert len(clusters) == 10
    assert clusters[0] == {"month": "2020-01", "event_count": 3}
