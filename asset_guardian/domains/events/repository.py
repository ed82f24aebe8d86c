"""
Workflow event repository for database operations.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import WORKFLOW_EVENTS


class WorkflowEventRepository(BaseRepository):
    """
    Repository for the append-only workflow event log.
    """

    collection_name = WORKFLOW_EVENTS
    entity_label = "Event"

    async def find_since(
            self,
            since: Optional[datetime] = None,
            scope: Optional[Dict[str, Any]] = None,
            entity_type: Optional[str] = None,
            entity_id: Optional[str] = None,
            skip: int = 0,
            limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Find events strictly newer than `since`, oldest first.

        Args:
            since: Only events created after this instant
            scope: Extra visibility filter
            entity_type: Filter by entity type
            entity_id: Filter by entity ID
            skip: Number of events to skip
            limit: Maximum number of events to return

        Returns:
            List of event documents
        """
        query: Dict[str, Any] = dict(scope or {})

        if since:
            query["created_at"] = {"$gt": since}

        if entity_type:
            query["entity_type"] = entity_type

        if entity_id:
            query["entity_id"] = entity_id

        return await self.find_many(query, skip, limit, sort_by="created_at")
