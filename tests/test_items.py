import pytest

from asset_guardian.core.exceptions import (
    ConflictError,
    NotFoundError,
    WorkflowValidationError,
)
from asset_guardian.domains.items.service import item_service
from asset_guardian.domains.requests.service import request_service
from asset_guardian.domains.returns.service import return_service


def laptop(**overrides):
    return {"name": "ThinkPad", "asset_tag": "AST-1", "serial_number": "SN-1", "category": "Laptop", **overrides}


async def test_new_items_are_available(org):
    item = await item_service.create_item(laptop(), org.storekeeper)

    assert item["status"] == "Available"
    assert item["current_custodian_id"] is None
    assert item["version"] == 1


async def test_duplicate_tag_or_serial_is_conflict(org):
    await item_service.create_item(laptop(), org.storekeeper)

    with pytest.raises(ConflictError):
        await item_service.create_item(laptop(serial_number="SN-2"), org.storekeeper)
    with pytest.raises(ConflictError):
        await item_service.create_item(laptop(asset_tag="AST-2"), org.storekeeper)


async def test_custody_rules_on_create(org):
    with pytest.raises(WorkflowValidationError):
        await item_service.create_item(laptop(status="Allocated"), org.storekeeper)
    with pytest.raises(WorkflowValidationError):
        await item_service.create_item(laptop(current_custodian_id=org.alice["_id"]), org.storekeeper)


async def test_allocate_assigns_custodian_department(org, make_item):
    item = await make_item()

    allocated = await item_service.allocate_item(item["_id"], org.carol["_id"], org.storekeeper)

    assert allocated["status"] == "Allocated"
    assert allocated["current_custodian_id"] == org.carol["_id"]
    assert allocated["owner_department_id"] == org.electrical["_id"]
    with pytest.raises(ConflictError):
        await item_service.allocate_item(item["_id"], org.alice["_id"], org.storekeeper)


async def test_status_change_keeps_custody_consistent(org, make_item):
    item = await make_item(custodian=org.alice)

    damaged = await item_service.change_status(item["_id"], "Damaged", org.storekeeper)
    assert damaged["current_custodian_id"] == org.alice["_id"]

    available = await item_service.change_status(item["_id"], "Available", org.storekeeper)
    assert available["current_custodian_id"] is None

    with pytest.raises(WorkflowValidationError):
        await item_service.change_status(item["_id"], "Allocated", org.storekeeper)
    with pytest.raises(ConflictError):
        await item_service.change_status(item["_id"], "Damaged", org.storekeeper, expected_version=1)


async def test_update_touches_descriptive_fields_only(org, make_item):
    item = await make_item(custodian=org.alice)

    updated = await item_service.update_item(
        item["_id"], {"name": "Renamed", "status": "Available", "current_custodian_id": None}
    )

    assert updated["name"] == "Renamed"
    assert updated["status"] == "Allocated"
    assert updated["current_custodian_id"] == org.alice["_id"]


async def test_return_to_store(org, make_item):
    item = await make_item(custodian=org.alice)

    stored = await item_service.return_to_store(item["_id"], org.storekeeper)

    assert stored["status"] == "Available"
    assert stored["current_custodian_id"] is None
    assert stored["owner_department_id"] is None


async def test_delete_refuses_referenced_items(org, make_item):
    loose = await make_item()
    referenced = await make_item(custodian=org.alice)
    allocated = await make_item()
    await return_service.create_return(org.alice, referenced["_id"])
    request = await request_service.create_request(org.alice, {"item_name": "Laptop"})
    await request_service.advance(request["_id"], org.computing_head, {"action": "approve"})
    await request_service.advance(request["_id"], org.engineering_dean, {"action": "approve"})
    await request_service.advance(
        request["_id"], org.storekeeper, {"action": "approve", "item_ids": [allocated["_id"]]}
    )

    with pytest.raises(ConflictError):
        await item_service.delete_item(referenced["_id"])
    with pytest.raises(ConflictError):
        await item_service.delete_item(allocated["_id"])
    assert await item_service.delete_item(loose["_id"]) is True
    with pytest.raises(NotFoundError):
        await item_service.get_item(loose["_id"])


async def test_stats_and_my_items(org, make_item):
    await make_item()
    mine = await make_item(custodian=org.alice)
    await make_item(custodian=org.carol, status="Under Maintenance")
    await make_item(status="Damaged")

    stats = await item_service.get_stats()
    assert stats == {"total": 4, "available": 1, "allocated": 1, "maintenance": 1, "damaged": 1}
    assert (await item_service.get_stats(org.electrical["_id"]))["total"] == 1
    assert [i["_id"] for i in await item_service.get_my_items(org.alice)] == [mine["_id"]]


async def test_list_filters(org, make_item):
    await make_item("Projector")
    await make_item("Laptop", custodian=org.alice)

    assert len(await item_service.get_items(status="Available")) == 1
    assert len(await item_service.get_items(search="proj")) == 1
    assert len(await item_service.get_items(department_id=org.computing["_id"])) == 1
    assert len(await item_service.get_items(limit=1)) == 1
