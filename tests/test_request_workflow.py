import asyncio

import pytest

from asset_guardian.core.exceptions import (
    AlreadyTerminalError,
    ConflictError,
    ForbiddenError,
    InvalidStageError,
    NotFoundError,
    WorkflowValidationError,
)
from asset_guardian.db.mongodb import ITEMS, WORKFLOW_EVENTS
from asset_guardian.domains.items.repository import ItemRepository
from asset_guardian.domains.notifications.repository import NotificationRepository
from asset_guardian.domains.requests.service import request_service
from asset_guardian.utils.datetime_handler import DateTimeHandler


def approve(**extra):
    return {"action": "approve", **extra}


async def submit(actor, **overrides):
    data = {"item_name": "Projector", "quantity": 1, "urgency": "medium", **overrides}
    return await request_service.create_request(actor, data)


async def test_staff_request_starts_at_department_head(org):
    request = await submit(org.alice, justification="Lecture hall")

    assert request["status"] == "pending_dept_head"
    assert request["requester_department_id"] == org.computing["_id"]
    assert request["requester_role"] == "staff"
    assert request["version"] == 1
    assert request["dept_head_approver_id"] is None


async def test_department_head_request_starts_at_dean(org):
    request = await submit(org.computing_head)

    assert request["status"] == "pending_dean"
    assert request["dept_head_approver_id"] == org.computing_head["_id"]


async def test_only_staff_and_department_heads_submit(org):
    with pytest.raises(ForbiddenError):
        await submit(org.storekeeper)


async def test_requester_needs_a_department(org):
    homeless = {**org.alice, "department_id": None}

    with pytest.raises(WorkflowValidationError):
        await submit(homeless)


async def test_rejection_by_department_head_records_reason(org, db):
    request = await submit(org.alice, urgency="critical")

    rejected = await request_service.advance(
        request["_id"], org.computing_head, {"action": "reject", "comment": "budget"}
    )

    assert rejected["status"] == "rejected"
    assert rejected["rejection_reason"] == "budget"
    assert rejected["rejected_by_id"] == org.computing_head["_id"]
    assert rejected["rejected_at"] is not None
    assert rejected["dept_head_approver_id"] is None
    assert await db[ITEMS].count_documents({}) == 0


async def test_full_chain_allocates_chosen_stock(org, make_item):
    items = [await make_item("Projector"), await make_item("Projector")]
    request = await submit(org.alice, quantity=2)

    request = await request_service.advance(request["_id"], org.computing_head, approve())
    assert request["status"] == "pending_dean"
    request = await request_service.advance(request["_id"], org.engineering_dean, approve())
    assert request["status"] == "pending_storekeeper"
    request = await request_service.advance(
        request["_id"], org.storekeeper, approve(item_ids=[i["_id"] for i in items])
    )

    assert request["status"] == "approved"
    assert request["dept_head_approver_id"] == org.computing_head["_id"]
    assert request["dean_approver_id"] == org.engineering_dean["_id"]
    assert request["storekeeper_allocator_id"] == org.storekeeper["_id"]
    assert request["allocated_item_ids"] == [i["_id"] for i in items]
    assert request["allocated_item_id"] == items[0]["_id"]
    assert request["version"] == 4

    for item in items:
        stored = await ItemRepository().get_by_id(item["_id"])
        assert stored["status"] == "Allocated"
        assert stored["current_custodian_id"] == org.alice["_id"]
        assert stored["owner_department_id"] == org.computing["_id"]


async def test_storekeeper_approval_of_head_request_creates_one_item(org, db):
    request = await submit(org.computing_head, item_name="Oscilloscope", item_description="100 MHz")
    request = await request_service.advance(request["_id"], org.engineering_dean, approve())

    request = await request_service.advance(request["_id"], org.storekeeper, approve())

    assert request["status"] == "approved"
    assert await db[ITEMS].count_documents({}) == 1
    item = await ItemRepository().get_by_id(request["allocated_item_id"])
    assert item["status"] == "Allocated"
    assert item["name"] == "Oscilloscope"
    assert item["description"] == "100 MHz"
    assert item["current_custodian_id"] == org.computing_head["_id"]
    assert item["owner_department_id"] == org.computing["_id"]
    assert item["asset_tag"].startswith("AST-")
    assert item["serial_number"].startswith("DEPT-")


async def pending_storekeeper(org, **overrides):
    request = await submit(org.alice, **overrides)
    request = await request_service.advance(request["_id"], org.computing_head, approve())
    return await request_service.advance(request["_id"], org.engineering_dean, approve())


async def test_staff_allocation_needs_exact_item_count(org, make_item):
    request = await pending_storekeeper(org, quantity=2)
    item = await make_item()

    with pytest.raises(WorkflowValidationError):
        await request_service.advance(request["_id"], org.storekeeper, approve())
    with pytest.raises(WorkflowValidationError):
        await request_service.advance(request["_id"], org.storekeeper, approve(item_ids=[item["_id"], item["_id"]]))


async def test_failed_item_allocation_rolls_back_everything(org, make_item, db):
    available = await make_item()
    taken = await make_item(custodian=org.bob)
    request = await pending_storekeeper(org, quantity=2)
    events_before = await db[WORKFLOW_EVENTS].count_documents({})

    with pytest.raises(ConflictError):
        await request_service.advance(
            request["_id"], org.storekeeper, approve(item_ids=[available["_id"], taken["_id"]])
        )

    stored = await request_service.repo.get_by_id(request["_id"])
    assert stored["status"] == "pending_storekeeper"
    assert stored["version"] == request["version"]
    first = await ItemRepository().get_by_id(available["_id"])
    assert first["status"] == "Available"
    assert first["current_custodian_id"] is None
    assert await db[WORKFLOW_EVENTS].count_documents({}) == events_before


async def test_failed_item_creation_keeps_head_request_pending(org, db, monkeypatch):
    monkeypatch.setattr(DateTimeHandler, "tag_suffix", lambda: "FIXED")
    await db[ITEMS].insert_one({"name": "Old projector", "asset_tag": "AST-FIXED", "status": "Available"})
    request = await submit(org.computing_head)
    request = await request_service.advance(request["_id"], org.engineering_dean, approve())
    events_before = await db[WORKFLOW_EVENTS].count_documents({})

    with pytest.raises(ConflictError):
        await request_service.advance(request["_id"], org.storekeeper, approve())

    stored = await request_service.repo.get_by_id(request["_id"])
    assert stored["status"] == "pending_storekeeper"
    assert stored["version"] == request["version"]
    assert stored.get("allocated_item_id") is None
    assert await db[ITEMS].count_documents({}) == 1
    assert await db[WORKFLOW_EVENTS].count_documents({}) == events_before


async def test_missing_item_is_not_found(org):
    request = await pending_storekeeper(org)

    with pytest.raises(NotFoundError):
        await request_service.advance(request["_id"], org.storekeeper, approve(item_ids=["0" * 24]))


async def test_wrong_role_cannot_skip_ahead(org):
    request = await submit(org.alice)

    with pytest.raises(InvalidStageError):
        await request_service.advance(request["_id"], org.engineering_dean, approve())
    with pytest.raises(InvalidStageError):
        await request_service.advance(request["_id"], org.admin, approve())


async def test_department_head_of_another_department_is_forbidden(org):
    request = await submit(org.alice)

    with pytest.raises(ForbiddenError):
        await request_service.advance(request["_id"], org.electrical_head, approve())


async def test_dean_of_another_college_is_forbidden(org):
    request = await submit(org.computing_head)

    with pytest.raises(ForbiddenError):
        await request_service.advance(request["_id"], org.science_dean, approve())


async def test_terminal_request_is_untouched(org, db):
    request = await submit(org.alice)
    rejected = await request_service.advance(request["_id"], org.computing_head, {"action": "reject"})
    events_before = await db[WORKFLOW_EVENTS].count_documents({})

    with pytest.raises(AlreadyTerminalError):
        await request_service.advance(request["_id"], org.computing_head, approve())

    stored = await request_service.repo.get_by_id(request["_id"])
    assert stored == rejected
    assert await db[WORKFLOW_EVENTS].count_documents({}) == events_before


async def test_stale_expected_version_is_a_conflict(org):
    request = await submit(org.alice)

    with pytest.raises(ConflictError):
        await request_service.advance(request["_id"], org.computing_head, approve(expected_version=7))


async def test_concurrent_approvals_one_wins(org, db):
    request = await submit(org.alice)

    results = await asyncio.gather(
        request_service.advance(request["_id"], org.computing_head, approve()),
        request_service.advance(request["_id"], org.computing_head, approve()),
        return_exceptions=True,
    )

    winners = [r for r in results if isinstance(r, dict)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], ConflictError)

    stored = await request_service.repo.get_by_id(request["_id"])
    assert stored["status"] == "pending_dean"
    assert stored["version"] == 2
    assert await db[WORKFLOW_EVENTS].count_documents({"entity_id": request["_id"], "action": "approve"}) == 1


async def test_each_transition_notifies_and_logs(org, db):
    request = await submit(org.alice)
    await request_service.advance(request["_id"], org.computing_head, approve())

    notifications = await NotificationRepository().find_by_user(org.alice["_id"])
    assert [n["title"] for n in notifications] == ["Request progressed"]
    dean_inbox = await NotificationRepository().find_by_user(org.engineering_dean["_id"])
    assert len(dean_inbox) == 1
    assert dean_inbox[0]["type"] == "approval"

    events = await db[WORKFLOW_EVENTS].find({"entity_id": request["_id"]}).sort("created_at", 1).to_list(None)
    assert [(e["action"], e["from_status"], e["to_status"], e["version"]) for e in events] == [
        ("created", None, "pending_dept_head", 1),
        ("approve", "pending_dept_head", "pending_dean", 2),
    ]


async def test_approval_queue_is_scoped(org):
    mine = await submit(org.alice)
    await submit(org.carol)

    queue = await request_service.get_approval_queue(org.computing_head)

    assert [r["_id"] for r in queue] == [mine["_id"]]
    assert await request_service.get_approval_queue(org.alice) == []


async def test_requests_visible_only_within_scope(org):
    request = await submit(org.alice)

    assert (await request_service.get_request(request["_id"], org.engineering_dean))["_id"] == request["_id"]
    with pytest.raises(ForbiddenError):
        await request_service.get_request(request["_id"], org.carol)
    assert await request_service.get_requests(org.physics_head) == []
    assert len(await request_service.get_requests(org.storekeeper)) == 1
