"""
Return request repository for database operations.
"""
from typing import Any, Dict, Optional

from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import RETURN_REQUESTS
from asset_guardian.models.return_request import ReturnStatus


class ReturnRequestRepository(BaseRepository):
    """
    Repository for return request data access.
    """

    collection_name = RETURN_REQUESTS
    entity_label = "Return request"

    async def find_pending_for_item(self, item_id: str, session=None) -> Optional[Dict[str, Any]]:
        return await self.find_one({"item_id": item_id, "status": ReturnStatus.PENDING.value}, session=session)
