"""
In-memory stand-ins for the Motor client, database, collection, cursor and session.

Only the query and update operators the services use are supported, plus single-field
unique indexes (optionally partial). Writes made inside a transaction are recorded
in the session's undo log and reverted on abort.
Every operation yields to the event loop once so concurrent tasks interleave.
"""
import asyncio
import copy
import re
from types import SimpleNamespace

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError


def _equals(value, expected):
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return value == expected


def _matches_operator(value, operator, operand):
    if operator == "$in":
        if isinstance(value, list):
            return any(v in operand for v in value)
        return value in operand
    if operator == "$nin":
        return not _matches_operator(value, "$in", operand)
    if operator == "$ne":
        return not _equals(value, operand)
    if operator == "$exists":
        return (value is not None) == bool(operand)
    if operator == "$type":
        return operand == "string" and isinstance(value, str)
    if operator == "$regex":
        return False if value is None else re.search(operand, str(value)) is not None
    if value is None:
        return False
    if operator == "$gt":
        return value > operand
    if operator == "$gte":
        return value >= operand
    if operator == "$lt":
        return value < operand
    if operator == "$lte":
        return value <= operand
    raise NotImplementedError(f"Query operator {operator} not supported")


def matches(document, query):
    for key, condition in (query or {}).items():
        if key == "$or":
            if not any(matches(document, clause) for clause in condition):
                return False
            continue
        if key == "$and":
            if not all(matches(document, clause) for clause in condition):
                return False
            continue

        value = document.get(key)
        if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
            condition = dict(condition)
            options = condition.pop("$options", "")
            if "$regex" in condition and "i" in options:
                condition["$regex"] = f"(?i){condition['$regex']}"
            if not all(_matches_operator(value, op, operand) for op, operand in condition.items()):
                return False
        elif not _equals(value, condition):
            return False
    return True


def apply_update(document, update):
    for operator, fields in update.items():
        for field, value in fields.items():
            if operator == "$set":
                document[field] = copy.deepcopy(value)
            elif operator == "$inc":
                document[field] = document.get(field, 0) + value
            else:
                raise NotImplementedError(f"Update operator {operator} not supported")


class FakeCursor:
    def __init__(self, documents):
        self._documents = documents
        self._skip = 0
        self._limit = 0

    def sort(self, key, direction=1):
        # Nulls sort first ascending, last descending
        self._documents.sort(key=lambda d: (d.get(key) is not None, d.get(key)), reverse=direction == -1)
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        await asyncio.sleep(0)
        documents = self._documents[self._skip:]
        limit = self._limit or length
        if limit:
            documents = documents[:limit]
        return [copy.deepcopy(d) for d in documents]


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.documents = {}
        self.unique_fields = {}

    async def create_index(self, keys, unique=False, partialFilterExpression=None, **kwargs):
        if unique and isinstance(keys, str):
            self.unique_fields[keys] = partialFilterExpression or {}
        return keys if isinstance(keys, str) else "_".join(k for k, _ in keys)

    def _record(self, session, doc_id):
        if session is not None and session.in_transaction:
            previous = self.documents.get(doc_id)
            session.undo_log.append((self, doc_id, copy.deepcopy(previous)))

    def _check_unique(self, document):
        for field, partial in self.unique_fields.items():
            value = document.get(field)
            if value is None or not matches(document, partial):
                continue
            for other in self.documents.values():
                if other["_id"] != document["_id"] and other.get(field) == value and matches(other, partial):
                    raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name} {field}")

    def _find(self, query):
        return [d for d in self.documents.values() if matches(d, query)]

    async def find_one(self, query=None, session=None):
        await asyncio.sleep(0)
        found = self._find(query)
        return copy.deepcopy(found[0]) if found else None

    def find(self, query=None, session=None):
        return FakeCursor(self._find(query))

    async def count_documents(self, query, session=None):
        await asyncio.sleep(0)
        return len(self._find(query))

    async def insert_one(self, document, session=None):
        await asyncio.sleep(0)
        document.setdefault("_id", ObjectId())
        stored = copy.deepcopy(document)
        self._check_unique(stored)
        self._record(session, stored["_id"])
        self.documents[stored["_id"]] = stored
        return SimpleNamespace(inserted_id=stored["_id"])

    def _update_document(self, document, update, session):
        updated = copy.deepcopy(document)
        apply_update(updated, update)
        self._check_unique(updated)
        self._record(session, document["_id"])
        self.documents[document["_id"]] = updated
        return updated

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE, session=None):
        await asyncio.sleep(0)
        found = self._find(query)
        if not found:
            return None
        before = copy.deepcopy(found[0])
        after = self._update_document(found[0], update, session)
        return copy.deepcopy(after) if return_document == ReturnDocument.AFTER else before

    async def update_one(self, query, update, session=None):
        await asyncio.sleep(0)
        found = self._find(query)
        if found:
            self._update_document(found[0], update, session)
        return SimpleNamespace(matched_count=len(found[:1]), modified_count=len(found[:1]))

    async def update_many(self, query, update, session=None):
        await asyncio.sleep(0)
        found = self._find(query)
        for document in found:
            self._update_document(document, update, session)
        return SimpleNamespace(matched_count=len(found), modified_count=len(found))

    async def delete_one(self, query, session=None):
        await asyncio.sleep(0)
        found = self._find(query)
        if found:
            self._record(session, found[0]["_id"])
            del self.documents[found[0]["_id"]]
        return SimpleNamespace(deleted_count=len(found[:1]))


class FakeDatabase:
    def __init__(self, name):
        self.name = name
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


class FakeSession:
    def __init__(self, client):
        self.client = client
        self.in_transaction = False
        self.undo_log = []

    def start_transaction(self):
        self.in_transaction = True
        self.undo_log = []

    async def commit_transaction(self):
        await asyncio.sleep(0)
        if self.client.commit_errors:
            raise self.client.commit_errors.pop(0)
        self.in_transaction = False
        self.undo_log = []
        self.client.commits += 1

    async def abort_transaction(self):
        for collection, doc_id, previous in reversed(self.undo_log):
            if previous is None:
                collection.documents.pop(doc_id, None)
            else:
                collection.documents[doc_id] = previous
        self.undo_log = []
        self.in_transaction = False
        self.client.aborts += 1

    async def end_session(self):
        if self.in_transaction:
            await self.abort_transaction()


class FakeClient:
    def __init__(self):
        self.databases = {}
        self.commit_errors = []
        self.commits = 0
        self.aborts = 0

    def __getitem__(self, name):
        if name not in self.databases:
            self.databases[name] = FakeDatabase(name)
        return self.databases[name]

    async def start_session(self):
        return FakeSession(self)

    def close(self):
        pass
