"""
Maintenance request repository for database operations.
"""
from typing import Any, Dict, Optional

from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import MAINTENANCE_REQUESTS
from asset_guardian.models.maintenance import MaintenanceStatus


class MaintenanceRequestRepository(BaseRepository):
    """
    Repository for maintenance request data access.
    """

    collection_name = MAINTENANCE_REQUESTS
    entity_label = "Maintenance request"

    async def find_pending_for_item(self, item_id: str, session=None) -> Optional[Dict[str, Any]]:
        return await self.find_one(
            {"item_id": item_id, "status": MaintenanceStatus.PENDING.value}, session=session
        )
