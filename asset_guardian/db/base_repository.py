"""
Base repository pattern implementation for MongoDB collections.
"""
import logging
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from asset_guardian.core.exceptions import ConflictError, NotFoundError
from asset_guardian.db.mongodb import get_collection
from asset_guardian.utils.datetime_handler import DateTimeHandler
from asset_guardian.utils.id_handler import IdHandler

logger = logging.getLogger(__name__)


class BaseRepository:
    """
    Base repository class that implements standard CRUD operations for MongoDB collections.
    Handles ID conversions, formatting, optimistic versioning and standard error patterns.

    Every method accepts an optional `session` so it can take part in a unit of work.
    """

    collection_name: str = None
    entity_label: str = "Document"

    def __init__(self, collection_name: Optional[str] = None):
        """
        Initialize repository with a collection name.
        The collection is resolved lazily so the connection can be swapped at runtime.

        Args:
            collection_name: Name of the MongoDB collection
        """
        if collection_name:
            self.collection_name = collection_name

    @property
    def collection(self):
        return get_collection(self.collection_name)

    async def find_by_id(self, id_value: Any, session=None) -> Optional[Dict[str, Any]]:
        """
        Find a document by ID with consistent ID handling.

        Args:
            id_value: ID to look for (string or ObjectId)
            session: Optional client session

        Returns:
            Document dict with formatted IDs or None if not found
        """
        if id_value is None:
            return None

        document = await self.collection.find_one(IdHandler.id_query(id_value), session=session)
        return IdHandler.format_object_ids(document) if document else None

    async def get_by_id(self, id_value: Any, session=None) -> Dict[str, Any]:
        """
        Find a document by ID or raise NotFoundError.

        Args:
            id_value: ID to look for
            session: Optional client session

        Returns:
            Document dict with formatted IDs

        Raises:
            NotFoundError: If the document does not exist
        """
        document = await self.find_by_id(id_value, session=session)
        if not document:
            raise NotFoundError(f"{self.entity_label} with ID {id_value} not found")
        return document

    async def find_many(self,
                        query: Dict[str, Any] = None,
                        skip: int = 0,
                        limit: int = 100,
                        sort_by: str = None,
                        sort_desc: bool = False,
                        session=None) -> List[Dict[str, Any]]:
        """
        Find documents matching query with pagination.

        Args:
            query: MongoDB query dictionary
            skip: Number of documents to skip
            limit: Maximum number of documents to return
            sort_by: Field to sort by
            sort_desc: If True, sort in descending order
            session: Optional client session

        Returns:
            List of documents with formatted IDs
        """
        if query is None:
            query = {}

        cursor = self.collection.find(query, session=session)

        if sort_by:
            direction = -1 if sort_desc else 1
            cursor = cursor.sort(sort_by, direction)

        cursor = cursor.skip(skip).limit(limit)

        documents = await cursor.to_list(length=limit)
        return IdHandler.format_object_ids(documents)

    async def find_one(self, query: Dict[str, Any], session=None) -> Optional[Dict[str, Any]]:
        """
        Find a single document matching query.

        Args:
            query: MongoDB query dictionary
            session: Optional client session

        Returns:
            Document dict with formatted IDs or None if not found
        """
        document = await self.collection.find_one(query, session=session)
        return IdHandler.format_object_ids(document) if document else None

    async def count(self, query: Dict[str, Any] = None, session=None) -> int:
        """
        Count documents matching query.

        Args:
            query: MongoDB query dictionary
            session: Optional client session

        Returns:
            Count of matching documents
        """
        if query is None:
            query = {}
        return await self.collection.count_documents(query, session=session)

    async def exists(self, query: Dict[str, Any], session=None) -> bool:
        return await self.count(query, session=session) > 0

    async def create(self, data: Dict[str, Any], session=None) -> Dict[str, Any]:
        """
        Create a new document.

        Args:
            data: Document data
            session: Optional client session

        Returns:
            Created document with formatted IDs

        Raises:
            ConflictError: If a unique index rejects the document
        """
        now = DateTimeHandler.get_current_datetime()
        data.setdefault("created_at", now)
        data.setdefault("updated_at", now)
        data.setdefault("version", 1)

        try:
            result = await self.collection.insert_one(data, session=session)
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key creating {self.entity_label}: {e}")
            raise ConflictError(f"A {self.entity_label.lower()} with these unique values already exists")

        return await self.get_by_id(result.inserted_id, session=session)

    async def update(self, id_value: Any, data: Dict[str, Any], session=None) -> Optional[Dict[str, Any]]:
        """
        Update a document by ID without an optimistic check.
        Used for descriptive fields only; workflow fields go through compare_and_set.

        Args:
            id_value: ID of document to update
            data: New field values
            session: Optional client session

        Returns:
            Updated document with formatted IDs or None if not found
        """
        update_data = {k: v for k, v in data.items() if k not in ("_id", "version")}
        update_data["updated_at"] = DateTimeHandler.get_current_datetime()

        try:
            document = await self.collection.find_one_and_update(
                IdHandler.id_query(id_value),
                {"$set": update_data, "$inc": {"version": 1}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key updating {self.entity_label} {id_value}: {e}")
            raise ConflictError(f"A {self.entity_label.lower()} with these unique values already exists")

        return IdHandler.format_object_ids(document) if document else None

    async def compare_and_set(
            self,
            id_value: Any,
            expected: Dict[str, Any],
            changes: Dict[str, Any],
            session=None
    ) -> Optional[Dict[str, Any]]:
        """
        Apply `changes` only if the document still matches `expected`.

        Args:
            id_value: ID of document to update
            expected: Field values the document must still have (e.g. status, version)
            changes: New field values
            session: Optional client session

        Returns:
            Updated document, or None if the document changed since it was read
        """
        query = IdHandler.id_query(id_value)
        query.update(expected)

        update_data = dict(changes)
        update_data["updated_at"] = DateTimeHandler.get_current_datetime()

        document = await self.collection.find_one_and_update(
            query,
            {"$set": update_data, "$inc": {"version": 1}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        return IdHandler.format_object_ids(document) if document else None

    async def delete(self, id_value: Any, session=None) -> bool:
        """
        Delete a document by ID.

        Args:
            id_value: ID of document to delete
            session: Optional client session

        Returns:
            True if document was deleted, False if not found
        """
        result = await self.collection.delete_one(IdHandler.id_query(id_value), session=session)
        return result.deleted_count > 0
