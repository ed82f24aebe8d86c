# asset_guardian/models/workflow_event.py
from enum import Enum
from typing import Optional

from asset_guardian.models.base import DocumentModel


class EntityType(str, Enum):
    REQUEST = "request"
    TRANSFER = "transfer"
    RETURN = "return"
    MAINTENANCE = "maintenance"
    ITEM = "item"


class WorkflowEventModel(DocumentModel):
    """
    Change event appended on every transition.
    `version` is the entity version after the write, not the event's own.
    """
    entity_type: EntityType
    entity_id: str
    action: str
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    comment: Optional[str] = None
