import itertools
from types import SimpleNamespace

import pytest

from mongo_fakes import FakeClient

from asset_guardian.core.config import settings
from asset_guardian.core.permissions import Role
from asset_guardian.db.mongodb import (
    COLLEGES,
    DEPARTMENTS,
    ITEMS,
    USERS,
    MongoDB,
)
from asset_guardian.models.item import ItemModel, ItemStatus
from asset_guardian.models.organization import CollegeModel, DepartmentModel
from asset_guardian.models.user import UserModel
from asset_guardian.workflow.events import event_bus


@pytest.fixture(autouse=True)
def fake_mongo():
    client = FakeClient()
    MongoDB.client = client
    MongoDB.db = client[settings.MONGODB_DB]
    event_bus.clear()
    yield client
    event_bus.clear()
    MongoDB.client = None
    MongoDB.db = None


@pytest.fixture
async def db(fake_mongo):
    await MongoDB.ensure_indexes()
    return fake_mongo[settings.MONGODB_DB]


async def _insert(db, collection, document):
    await db[collection].insert_one(document)
    document["_id"] = str(document["_id"])
    return document


@pytest.fixture
async def org(db):
    """
    Two colleges. Engineering has Computing and Electrical, Science has Physics.
    Every department has a head and two staff; each college has a dean.
    """
    engineering = await _insert(db, COLLEGES, CollegeModel(name="Engineering").to_document())
    science = await _insert(db, COLLEGES, CollegeModel(name="Science").to_document())

    computing = await _insert(db, DEPARTMENTS, DepartmentModel(name="Computing", college_id=engineering["_id"]).to_document())
    electrical = await _insert(db, DEPARTMENTS, DepartmentModel(name="Electrical", college_id=engineering["_id"]).to_document())
    physics = await _insert(db, DEPARTMENTS, DepartmentModel(name="Physics", college_id=science["_id"]).to_document())

    async def user(name, role, department=None, college=None):
        return await _insert(db, USERS, UserModel(
            email=f"{name}@example.edu",
            full_name=name.replace("_", " ").title(),
            password="not-a-real-hash",
            role=role,
            department_id=department["_id"] if department else None,
            college_id=college["_id"] if college else None,
        ).to_document())

    return SimpleNamespace(
        engineering=engineering,
        science=science,
        computing=computing,
        electrical=electrical,
        physics=physics,
        admin=await user("admin", Role.ADMIN),
        storekeeper=await user("storekeeper", Role.STOREKEEPER),
        engineering_dean=await user("engineering_dean", Role.COLLEGE_DEAN, college=engineering),
        science_dean=await user("science_dean", Role.COLLEGE_DEAN, college=science),
        computing_head=await user("computing_head", Role.DEPARTMENT_HEAD, computing, engineering),
        electrical_head=await user("electrical_head", Role.DEPARTMENT_HEAD, electrical, engineering),
        physics_head=await user("physics_head", Role.DEPARTMENT_HEAD, physics, science),
        alice=await user("alice", Role.STAFF, computing, engineering),
        bob=await user("bob", Role.STAFF, computing, engineering),
        carol=await user("carol", Role.STAFF, electrical, engineering),
        dave=await user("dave", Role.STAFF, physics, science),
    )


_tags = itertools.count(1000)


@pytest.fixture
def make_item(db):
    """Insert an item straight into the store; allocated when a custodian is given."""
    async def factory(name="Laptop", custodian=None, status=None, department_id=None):
        suffix = next(_tags)
        if status is None:
            status = ItemStatus.ALLOCATED if custodian else ItemStatus.AVAILABLE
        return await _insert(db, ITEMS, ItemModel(
            name=name,
            asset_tag=f"TAG-{suffix}",
            serial_number=f"SN-{suffix}",
            category="Electronics",
            status=status,
            current_custodian_id=custodian["_id"] if custodian else None,
            owner_department_id=department_id or (custodian or {}).get("department_id"),
        ).to_document())

    return factory
