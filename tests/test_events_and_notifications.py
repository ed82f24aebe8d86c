import pytest

from asset_guardian.core.exceptions import ConflictError, ForbiddenError
from asset_guardian.domains.events.service import event_service
from asset_guardian.domains.notifications.service import notification_service
from asset_guardian.domains.requests.service import request_service
from asset_guardian.workflow.events import event_bus


async def submit(actor):
    return await request_service.create_request(actor, {"item_name": "Projector"})


async def test_subscribers_receive_committed_events(org):
    received = []
    event_bus.subscribe(received.append)

    request = await submit(org.alice)
    await request_service.advance(request["_id"], org.computing_head, {"action": "approve"})

    assert [(e["entity_type"], e["action"], e["to_status"]) for e in received] == [
        ("request", "created", "pending_dept_head"),
        ("request", "approve", "pending_dean"),
    ]


async def test_failed_transition_publishes_nothing(org):
    request = await submit(org.alice)
    received = []
    event_bus.subscribe(received.append)

    with pytest.raises(ConflictError):
        await request_service.advance(request["_id"], org.computing_head, {"action": "approve", "expected_version": 5})

    assert received == []


async def test_failing_subscriber_does_not_break_transition(org):
    @event_bus.subscribe
    async def broken(event):
        raise RuntimeError("subscriber down")

    request = await submit(org.alice)
    approved = await request_service.advance(request["_id"], org.computing_head, {"action": "approve"})

    assert approved["status"] == "pending_dean"


async def test_feed_since_returns_only_newer_events(org):
    request = await submit(org.alice)
    first = (await event_service.list_events(org.admin))[-1]

    await request_service.advance(request["_id"], org.computing_head, {"action": "approve"})
    newer = await event_service.list_events(org.admin, since=first["created_at"])

    assert [e["action"] for e in newer] == ["approve"]
    assert newer[0]["version"] == 2


async def test_feed_filters_and_visibility(org, make_item):
    request = await submit(org.alice)
    await submit(org.dave)

    assert {e["entity_id"] for e in await event_service.list_events(org.alice)} == {request["_id"]}
    assert len(await event_service.list_events(org.engineering_dean)) == 1
    assert len(await event_service.list_events(org.storekeeper)) == 2
    assert await event_service.list_events(org.carol) == []
    assert len(await event_service.list_events(org.admin, entity_type="request", entity_id=request["_id"])) == 1


async def test_notifications_read_flow(org):
    request = await submit(org.alice)
    await request_service.advance(request["_id"], org.computing_head, {"action": "reject", "comment": "budget"})

    assert await notification_service.get_unread_count(org.alice) == 1
    [notification] = await notification_service.get_notifications(org.alice, unread_only=True)
    assert notification["title"] == "Request rejected"
    assert "budget" in notification["message"]

    with pytest.raises(ForbiddenError):
        await notification_service.mark_as_read(notification["_id"], org.bob)

    read = await notification_service.mark_as_read(notification["_id"], org.alice)
    assert read["is_read"] is True
    assert await notification_service.get_unread_count(org.alice) == 0


async def test_mark_all_read(org):
    await submit(org.alice)
    await submit(org.bob)

    assert await notification_service.get_unread_count(org.computing_head) == 2
    assert await notification_service.mark_all_as_read(org.computing_head) == 2
    assert await notification_service.get_unread_count(org.computing_head) == 0
