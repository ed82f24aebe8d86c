"""
Item request repository for database operations.
"""
from typing import Any, Dict, Iterable, List, Optional

from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import ITEM_REQUESTS


class ItemRequestRepository(BaseRepository):
    """
    Repository for item request data access.
    """

    collection_name = ITEM_REQUESTS
    entity_label = "Request"

    async def find_by_requester(self, requester_id: str, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.find_many(
            {"requester_id": requester_id}, skip, limit, sort_by="created_at", sort_desc=True
        )

    async def find_in_statuses(
            self,
            statuses: Iterable[str],
            department_ids: Optional[List[str]] = None,
            skip: int = 0,
            limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Find requests waiting in any of the given statuses, oldest first.

        Args:
            statuses: Statuses to include
            department_ids: Restrict to requester departments, None for all
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of request documents
        """
        query: Dict[str, Any] = {"status": {"$in": list(statuses)}}
        if department_ids is not None:
            query["requester_department_id"] = {"$in": department_ids}
        return await self.find_many(query, skip, limit, sort_by="created_at")
