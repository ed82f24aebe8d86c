"""
Transfer repository for database operations.
"""
from typing import Any, Dict, Iterable, List, Optional

from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import ITEM_TRANSFERS


class TransferRepository(BaseRepository):
    """
    Repository for item transfer data access.
    """

    collection_name = ITEM_TRANSFERS
    entity_label = "Transfer"

    async def find_open_for_item(self, item_id: str, session=None) -> Optional[Dict[str, Any]]:
        return await self.find_one({"item_id": item_id, "is_open": True}, session=session)

    async def find_by_initiator(self, initiator_id: str, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.find_many({"initiator_id": initiator_id}, skip, limit,
                                    sort_by="created_at", sort_desc=True)

    async def find_by_receiver(self, receiver_id: str, status: Optional[str] = None,
                               skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"receiver_id": receiver_id}
        if status:
            query["status"] = status
        return await self.find_many(query, skip, limit, sort_by="created_at", sort_desc=True)

    async def find_in_statuses(
            self,
            statuses: Iterable[str],
            approving_department_ids: Optional[List[str]] = None,
            skip: int = 0,
            limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Find transfers waiting in any of the given statuses, oldest first.

        Args:
            statuses: Statuses to include
            approving_department_ids: Restrict to transfers these departments sign off, None for all
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of transfer documents
        """
        query: Dict[str, Any] = {"status": {"$in": list(statuses)}}
        if approving_department_ids is not None:
            query["approving_department_id"] = {"$in": approving_department_ids}
        return await self.find_many(query, skip, limit, sort_by="created_at")
