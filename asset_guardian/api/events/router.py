"""
Change feed API routes.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends

from asset_guardian.api.pagination import Pagination
from asset_guardian.dependencies.permissions import has_permission
from asset_guardian.domains.events.service import event_service
from asset_guardian.models.workflow_event import EntityType
from asset_guardian.schemas.event import WorkflowEventResponse

router = APIRouter()


@router.get("/", response_model=List[WorkflowEventResponse])
async def read_events(
        page: Pagination = Depends(),
        since: Optional[datetime] = None,
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[str] = None,
        current_user: dict = Depends(has_permission("events:read"))
):
    """
    Get workflow events newer than `since`, oldest first.

    Clients pass the `created_at` of the last event they saw to pick up
    every later change and refetch only the entities it names.

    Args:
        page: Pagination parameters
        since: ISO timestamp; naive values are read as UTC
        entity_type: Filter by entity type
        entity_id: Filter by entity ID
        current_user: Current user from token

    Returns:
        List of events
    """
    return await event_service.list_events(
        current_user,
        since=since,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
        skip=page.skip,
        limit=page.limit,
    )
