import asyncio

from app.core.safety_monitor import SafetyMonitor

from conftest import FlakyDocumentStore, run

HAZARDS = [
    {"lat": {"$numberDouble": "11.0175"}, "lon": {"$numberDouble": "76.3104"}, "prediction": {"$numberInt": "1"}},
    {"lat": 11.5, "lon": 76.5, "prediction": 0},
    {"lat": "broken"},
]

async def _seed_users(store):
    await store.set("userLocation/near@example.com", {"latitude": 11.0175, "longitude": 76.3104})
    await store.set("userLocation/far@example.com", {"latitude": 12.0, "longitude": 77.0})
    await store.set("userLocation/lost@example.com", {"latitude": None, "longitude": 77.0})

def test_replace_heatmap_discards_malformed_records(store):
    monitor = SafetyMonitor(store)

    points = monitor.replace_heatmap(HAZARDS)

    assert len(points) == 2
    assert monitor.generation == 1

def test_pass_classifies_and_publishes_tracked_users(store):
    monitor = SafetyMonitor(store)
    monitor.replace_heatmap(HAZARDS)

    async def scenario():
        await _seed_users(store)
        result = await monitor.run_pass()
        near = await store.get("userLocation/near@example.com/situation/SafeOrNot")
        far = await store.get("userLocation/far@example.com/situation/SafeOrNot")
        return result, near, far

    result, near, far = run(scenario())

    assert set(result.statuses) == {"near@example.com", "far@example.com"}
    assert result.report.published == 2
    assert near["safe"] is False and near["minDistance"] == 0.0
    assert far["safe"] is True and far["minDistance"] > 0.00007
    assert monitor.last_pass is result

def test_pass_with_empty_snapshot_marks_everyone_safe(store):
    monitor = SafetyMonitor(store)

    async def scenario():
        await _seed_users(store)
        return await monitor.run_pass()

    result = run(scenario())

    assert all(status.safe for status in result.statuses.values())

def test_pass_without_users_publishes_nothing(store):
    monitor = SafetyMonitor(store)
    monitor.replace_heatmap(HAZARDS)

    result = run(monitor.run_pass())

    assert result.statuses == {}
    assert result.report.results == []

def test_publish_failure_keeps_in_memory_verdict():
    store = FlakyDocumentStore(failing_prefixes=["userLocation/near@example.com/situation"])
    monitor = SafetyMonitor(store)
    monitor.replace_heatmap(HAZARDS)

    async def scenario():
        await _seed_users(store)
        return await monitor.run_pass()

    result = run(scenario())

    assert result.statuses["near@example.com"].safe is False
    assert result.report.failed == 1
    assert result.report.published == 1

def test_heatmap_feed_triggers_a_pass(store):
    monitor = SafetyMonitor(store)

    async def scenario():
        await _seed_users(store)
        await monitor.attach_heatmap_feed("heatmaps/active")
        await store.set("heatmaps/active", {"points": HAZARDS})
        await monitor.aclose()
        return await store.get("userLocation/near@example.com/situation/SafeOrNot")

    verdict = run(scenario())

    assert len(monitor.points) == 2
    assert verdict["safe"] is False
    assert store.subscriber_count("heatmaps/active") == 0

def test_pass_is_flagged_superseded_when_inputs_change_mid_publish(store):
    monitor = SafetyMonitor(store)
    monitor.replace_heatmap(HAZARDS)

    async def scenario():
        await _seed_users(store)
        running = asyncio.ensure_future(monitor.run_pass())
        # Let the pass start before the newer snapshot arrives
        await asyncio.sleep(0)
        monitor.replace_heatmap([])
        return await running

    result = run(scenario())

    assert result.superseded is True
    assert result.generation == 1
