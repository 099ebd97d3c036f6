import httpx
import pytest

from brazesync.models import ExportEvent, InboundEvent, ShapedExport, TrackBatch
from brazesync.utils.braze_client import RetryError
from brazesync.utils.export_batcher import MAX_BATCH_SIZE, batch_exports, dispatch_batches
from brazesync.utils.exporter import export_events, on_event
from tests.conftest import make_config


def _attribute(i):
    return ShapedExport(attributes=[{"email": f"u{i}@posthog", "external_id": f"u{i}"}])


def _event(i):
    return ShapedExport(events=[ExportEvent(name="e", time="2023-06-16T00:00:00.000Z", external_id=f"u{i}")])


def test_150_attributes_make_two_full_batches():
    batches = batch_exports(_attribute(i) for i in range(150))
    assert [len(b.attributes) for b in batches] == [MAX_BATCH_SIZE, MAX_BATCH_SIZE]
    assert all(b.events == [] for b in batches)


def test_events_and_attributes_share_a_batch_until_either_overflows():
    shaped = [_attribute(i) for i in range(75)] + [_event(i) for i in range(75)] + [_event(75)]
    batches = batch_exports(shaped)
    assert [(len(b.attributes), len(b.events)) for b in batches] == [(75, 75), (0, 1)]


def test_empty_entries_are_skipped():
    shaped = [ShapedExport(), _attribute(1), ShapedExport(), ShapedExport()]
    batches = batch_exports(shaped)
    assert len(batches) == 1
    assert batch_exports([ShapedExport()]) == []


def test_custom_limit():
    assert len(batch_exports((_attribute(i) for i in range(5)), limit=2)) == 3


def _track_ok(request):
    return httpx.Response(201, json={"message": "success", "attributes_processed": 1})


@pytest.mark.asyncio
async def test_dispatch_sends_every_batch(braze):
    braze.routes["POST /users/track"] = _track_ok
    batches = batch_exports(_attribute(i) for i in range(160))
    await dispatch_batches(batches, braze.client())
    bodies = braze.bodies("POST", "/users/track")
    assert sorted(len(body["attributes"]) for body in bodies) == [10, 75, 75]


@pytest.mark.asyncio
async def test_dispatch_waits_for_all_then_raises(braze):
    seen = []

    def _route(request):
        body = request.read()
        seen.append(body)
        if len(seen) == 1:
            return httpx.Response(400, json={"errors": [{"type": "bad"}]})
        return _track_ok(request)

    braze.routes["POST /users/track"] = _route
    batches = [TrackBatch(attributes=[{"external_id": str(i), "a": i}]) for i in range(3)]
    with pytest.raises(RetryError, match="Braze API error onEvent, retrying."):
        await dispatch_batches(batches, braze.client())
    assert len(seen) == 3


@pytest.mark.asyncio
async def test_non_success_message_is_retryable(braze):
    braze.routes["POST /users/track"] = {"message": "queued"}
    with pytest.raises(RetryError):
        await dispatch_batches([TrackBatch(attributes=[{"external_id": "x"}])], braze.client())


@pytest.mark.asyncio
async def test_on_event_posts_request_body(braze):
    braze.routes["POST /users/track"] = _track_ok
    config = make_config(eventsToExport="account created", userPropertiesToExport="email,name")
    event = InboundEvent.model_validate(
        {
            "event": "account created",
            "timestamp": "2023-06-16T00:00:00.00Z",
            "properties": {"$set": {"email": "test@posthog", "name": "Test User"}, "is_a_demo_user": True},
            "distinct_id": "test",
        }
    )
    assert await on_event(event, config, braze.client()) is True
    assert braze.bodies("POST", "/users/track") == [
        {
            "attributes": [{"email": "test@posthog", "name": "Test User", "external_id": "test"}],
            "events": [
                {
                    "name": "account created",
                    "time": "2023-06-16T00:00:00.00Z",
                    "external_id": "test",
                    "properties": {"is_a_demo_user": True},
                }
            ],
        }
    ]


@pytest.mark.asyncio
async def test_on_event_noop_skips_network(braze):
    config = make_config(eventsToExport="account created", userPropertiesToExport="email")
    event = InboundEvent(event="$pageview", distinct_id="test")
    assert await on_event(event, config, braze.client()) is False
    assert braze.calls == []


@pytest.mark.asyncio
async def test_export_events_batches_many(braze):
    braze.routes["POST /users/track"] = _track_ok
    config = make_config(eventsToExport="signup")
    events = [InboundEvent(event="signup", distinct_id=str(i), timestamp="2023-06-16T00:00:00Z") for i in range(80)]
    assert await export_events(events, config, braze.client()) == 2
    assert sorted(len(body["events"]) for body in braze.bodies("POST", "/users/track")) == [5, 75]
