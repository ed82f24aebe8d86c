"""
Item repository for database operations.
"""
from typing import Any, Dict, List, Optional

from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import ITEMS
from asset_guardian.models.item import ItemStatus


class ItemRepository(BaseRepository):
    """
    Repository for item (asset) data access.
    """

    collection_name = ITEMS
    entity_label = "Item"

    async def find_by_asset_tag(self, asset_tag: str) -> Optional[Dict[str, Any]]:
        return await self.find_one({"asset_tag": asset_tag})

    async def asset_tag_exists(self, asset_tag: str) -> bool:
        return await self.exists({"asset_tag": asset_tag})

    async def serial_number_exists(self, serial_number: str) -> bool:
        return await self.exists({"serial_number": serial_number})

    async def find_by_custodian(self, custodian_id: str, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.find_many({"current_custodian_id": custodian_id}, skip, limit, sort_by="name")

    async def count_by_status(self, department_id: Optional[str] = None) -> Dict[str, int]:
        """
        Count items per status.

        Args:
            department_id: Restrict to items owned by this department

        Returns:
            Mapping of status value to count, every status present
        """
        base_query = {"owner_department_id": department_id} if department_id else {}

        counts = {}
        for item_status in ItemStatus:
            counts[item_status.value] = await self.count({**base_query, "status": item_status.value})
        return counts
