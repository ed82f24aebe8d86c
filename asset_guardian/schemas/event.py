from typing import List, Optional

from asset_guardian.models.workflow_event import EntityType
from asset_guardian.schemas.base import DocumentResponse


class WorkflowEventResponse(DocumentResponse):
    """One change in the feed; `version` is the entity's version after the change."""
    entity_type: EntityType
    entity_id: str
    action: str
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    comment: Optional[str] = None
    participant_ids: List[str] = []
    department_ids: List[str] = []
