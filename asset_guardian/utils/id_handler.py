"""
ObjectId handling for documents crossing the repository boundary.

Documents leave the repositories with every ObjectId as a string, so services
and responses only ever see string IDs. Lookups accept either form.
"""
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId

Document = Dict[str, Any]


class IdHandler:

    @staticmethod
    def ensure_object_id(id_value: Any) -> Optional[ObjectId]:
        """ObjectId for a valid hex string or ObjectId, None otherwise."""
        if isinstance(id_value, ObjectId):
            return id_value
        if isinstance(id_value, str) and ObjectId.is_valid(id_value):
            return ObjectId(id_value)
        return None

    @staticmethod
    def id_query(id_value: Any) -> Document:
        """
        Build an `_id` filter.

        Seed data and tests may store string IDs, so values that are not valid
        ObjectIds are matched as-is.
        """
        obj_id = IdHandler.ensure_object_id(id_value)
        return {"_id": obj_id if obj_id is not None else id_value}

    @staticmethod
    def format_object_ids(data: Union[Document, List[Document], None]) -> Union[Document, List[Document], None]:
        """
        Stringify ObjectIds in a document or list of documents, recursing into
        nested dicts and lists (e.g. `allocated_item_ids`).
        """
        if isinstance(data, list):
            return [IdHandler.format_object_ids(item) for item in data]
        if isinstance(data, ObjectId):
            return str(data)
        if isinstance(data, dict):
            return {key: IdHandler.format_object_ids(value) for key, value in data.items()}
        return data
