import httpx
import pytest
from fastapi.testclient import TestClient

from asset_guardian.core.config import settings
from asset_guardian.core.security import create_access_token
from asset_guardian.main import app

API = settings.API_V1_STR


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(str(user['_id']))}"}


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def test_startup_creates_admin_who_can_log_in():
    with TestClient(app) as client:
        response = client.post(
            f"{API}/auth/login",
            data={"username": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["role"] == "admin"
        assert "users:write" in me.json()["permissions"]

        bad = client.post(f"{API}/auth/login", data={"username": settings.ADMIN_EMAIL, "password": "wrong"})
        assert bad.status_code == 401


async def test_unauthenticated_requests_are_rejected(client):
    response = await client.get(f"{API}/requests/")
    assert response.status_code == 401


async def test_request_chain_over_http(client, org, make_item):
    stock = await make_item()

    created = await client.post(f"{API}/requests/", json={"item_name": "Laptop"}, headers=auth(org.alice))
    assert created.status_code == 201
    request = created.json()
    assert request["status"] == "pending_dept_head"
    assert "_id" in request

    url = f"{API}/requests/{request['_id']}/decision"
    for approver in (org.computing_head, org.engineering_dean):
        response = await client.post(url, json={"action": "approve"}, headers=auth(approver))
        assert response.status_code == 200

    done = await client.post(
        url, json={"action": "approve", "item_ids": [stock["_id"]]}, headers=auth(org.storekeeper)
    )
    assert done.status_code == 200
    assert done.json()["status"] == "approved"
    assert done.json()["allocated_item_ids"] == [stock["_id"]]

    mine = await client.get(f"{API}/items/me", headers=auth(org.alice))
    assert [item["_id"] for item in mine.json()] == [stock["_id"]]

    events = await client.get(f"{API}/events/", params={"entity_id": request["_id"]}, headers=auth(org.alice))
    assert [e["action"] for e in events.json()] == ["created", "approve", "approve", "approve"]


async def test_workflow_errors_carry_their_kind(client, org):
    created = await client.post(f"{API}/requests/", json={"item_name": "Chair"}, headers=auth(org.alice))
    url = f"{API}/requests/{created.json()['_id']}/decision"

    wrong_stage = await client.post(url, json={"action": "approve"}, headers=auth(org.engineering_dean))
    assert wrong_stage.status_code == 409
    assert wrong_stage.json()["error"] == "invalid_stage"

    out_of_scope = await client.post(url, json={"action": "approve"}, headers=auth(org.electrical_head))
    assert out_of_scope.status_code == 403
    assert out_of_scope.json()["error"] == "forbidden"

    stale = await client.post(url, json={"action": "approve", "expected_version": 7}, headers=auth(org.computing_head))
    assert stale.status_code == 409
    assert stale.json()["error"] == "conflict"

    rejected = await client.post(url, json={"action": "reject", "comment": "budget"}, headers=auth(org.computing_head))
    assert rejected.json()["rejection_reason"] == "budget"

    terminal = await client.post(url, json={"action": "approve"}, headers=auth(org.computing_head))
    assert terminal.json()["error"] == "already_terminal"

    missing = await client.get(f"{API}/requests/{'0' * 24}", headers=auth(org.alice))
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"


async def test_staff_cannot_reach_approver_routes(client, org):
    response = await client.get(f"{API}/requests/queue", headers=auth(org.alice))
    assert response.status_code == 403

    response = await client.post(f"{API}/items/", json={"name": "x"}, headers=auth(org.alice))
    assert response.status_code == 403


async def test_transfer_over_http(client, org, make_item):
    item = await make_item(custodian=org.alice)

    created = await client.post(
        f"{API}/transfers/",
        json={"item_id": item["_id"], "receiver_id": org.bob["_id"], "reason": "swap desks"},
        headers=auth(org.alice),
    )
    assert created.status_code == 201
    transfer = created.json()
    assert transfer["transfer_type"] == "intra_department"

    approved = await client.post(
        f"{API}/transfers/{transfer['_id']}/decision", json={"action": "approve"}, headers=auth(org.storekeeper)
    )
    assert approved.status_code == 200

    incoming = await client.get(f"{API}/transfers/incoming", headers=auth(org.bob))
    assert [t["_id"] for t in incoming.json()] == [transfer["_id"]]

    accepted = await client.post(f"{API}/transfers/{transfer['_id']}/accept", json={}, headers=auth(org.bob))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "completed"

    moved = await client.get(f"{API}/items/{item['_id']}", headers=auth(org.bob))
    assert moved.json()["current_custodian_id"] == org.bob["_id"]


async def test_notifications_over_http(client, org):
    await client.post(f"{API}/requests/", json={"item_name": "Desk"}, headers=auth(org.alice))

    count = await client.get(f"{API}/notifications/unread-count", headers=auth(org.computing_head))
    assert count.json()["count"] == 1

    [notification] = (await client.get(f"{API}/notifications/", headers=auth(org.computing_head))).json()
    forbidden = await client.post(f"{API}/notifications/{notification['_id']}/read", headers=auth(org.bob))
    assert forbidden.status_code == 403

    marked = await client.post(f"{API}/notifications/read-all", headers=auth(org.computing_head))
    assert marked.json()["updated"] == 1


async def test_transfer_decisions_need_approver_rights(client, org, make_item):
    item = await make_item(custodian=org.alice)
    created = await client.post(
        f"{API}/transfers/", json={"item_id": item["_id"], "receiver_id": org.bob["_id"]}, headers=auth(org.alice)
    )
    url = f"{API}/transfers/{created.json()['_id']}/decision"

    for staff in (org.alice, org.bob):
        response = await client.post(url, json={"action": "approve"}, headers=auth(staff))
        assert response.status_code == 403

    stored = await client.get(f"{API}/transfers/{created.json()['_id']}", headers=auth(org.alice))
    assert stored.json()["status"] == "pending_storekeeper"


async def test_domain_validation_is_unprocessable(client, org, make_item):
    item = await make_item(custodian=org.alice)

    response = await client.post(
        f"{API}/transfers/", json={"item_id": item["_id"], "receiver_id": org.alice["_id"]}, headers=auth(org.alice)
    )

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"
