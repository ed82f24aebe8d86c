import pytest
from pymongo.errors import OperationFailure

from asset_guardian.core.exceptions import ConflictError
from asset_guardian.db.mongodb import ITEMS
from asset_guardian.db.unit_of_work import UnitOfWork


def labelled_error(label):
    return OperationFailure("simulated", code=112, details={"errorLabels": [label]})


async def test_commit_runs_after_commit_hooks(db, fake_mongo):
    calls = []

    async with UnitOfWork() as uow:
        await db[ITEMS].insert_one({"asset_tag": "A"}, session=uow.session)

        async def hook():
            calls.append("published")
        uow.after_commit(hook)

    assert calls == ["published"]
    assert fake_mongo.commits == 1
    assert await db[ITEMS].count_documents({}) == 1


async def test_exception_aborts_and_skips_hooks(db, fake_mongo):
    calls = []

    with pytest.raises(RuntimeError):
        async with UnitOfWork() as uow:
            await db[ITEMS].insert_one({"asset_tag": "A"}, session=uow.session)

            async def hook():
                calls.append("published")
            uow.after_commit(hook)
            raise RuntimeError("boom")

    assert calls == []
    assert fake_mongo.aborts == 1
    assert await db[ITEMS].count_documents({}) == 0


async def test_transient_write_conflict_becomes_conflict(db):
    with pytest.raises(ConflictError):
        async with UnitOfWork() as uow:
            await db[ITEMS].insert_one({"asset_tag": "A"}, session=uow.session)
            raise labelled_error("TransientTransactionError")

    assert await db[ITEMS].count_documents({}) == 0


async def test_unknown_commit_result_is_retried(db, fake_mongo):
    fake_mongo.commit_errors.append(labelled_error("UnknownTransactionCommitResult"))

    async with UnitOfWork() as uow:
        await db[ITEMS].insert_one({"asset_tag": "A"}, session=uow.session)

    assert fake_mongo.commits == 1
    assert await db[ITEMS].count_documents({}) == 1


async def test_transient_commit_failure_becomes_conflict(db, fake_mongo):
    fake_mongo.commit_errors.append(labelled_error("TransientTransactionError"))

    with pytest.raises(ConflictError):
        async with UnitOfWork() as uow:
            await db[ITEMS].insert_one({"asset_tag": "A"}, session=uow.session)

    assert await db[ITEMS].count_documents({}) == 0
