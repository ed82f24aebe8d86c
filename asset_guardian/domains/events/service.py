"""
Workflow event service: records one change event per transition and serves the change feed.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from asset_guardian.core.permissions import Role
from asset_guardian.db.unit_of_work import UnitOfWork
from asset_guardian.domains.events.repository import WorkflowEventRepository
from asset_guardian.domains.organization.service import organization_service
from asset_guardian.models.workflow_event import WorkflowEventModel
from asset_guardian.utils.datetime_handler import DateTimeHandler
from asset_guardian.workflow.events import event_bus

logger = logging.getLogger(__name__)


class WorkflowEventService:
    """
    Service for the workflow change feed.
    """

    def __init__(self, event_repo: Optional[WorkflowEventRepository] = None, bus=None):
        """
        Initialize with event repository and publisher.

        Args:
            event_repo: Optional event repository instance
            bus: Optional event bus (defaults to the process-wide bus)
        """
        self.event_repo = event_repo or WorkflowEventRepository()
        self.bus = bus or event_bus

    async def record(
            self,
            uow: UnitOfWork,
            entity_type: str,
            entity: Dict[str, Any],
            action: str,
            actor: Optional[Dict[str, Any]],
            from_status: Optional[str] = None,
            comment: Optional[str] = None,
            participant_ids: Iterable[Optional[str]] = (),
            department_ids: Iterable[Optional[str]] = ()
    ) -> Dict[str, Any]:
        """
        Append an event inside the caller's transaction and publish it after commit.

        Args:
            uow: Active unit of work
            entity_type: Kind of entity that changed
            entity: Entity document after the write
            action: What happened (created, approve, reject, accept, ...)
            actor: User who acted, None for system actions
            from_status: Status before the write
            comment: Optional comment or reason
            participant_ids: Users involved in the entity
            department_ids: Departments the entity belongs to

        Returns:
            Created event document
        """
        event = WorkflowEventModel(
            entity_type=entity_type,
            entity_id=str(entity["_id"]),
            action=action,
            from_status=from_status,
            to_status=entity.get("status"),
            actor_id=str(actor["_id"]) if actor else None,
            actor_role=actor.get("role") if actor else None,
            comment=comment,
            version=entity.get("version", 1),
        ).to_document()
        event["participant_ids"] = sorted({str(p) for p in participant_ids if p})
        event["department_ids"] = sorted({str(d) for d in department_ids if d})

        created = await self.event_repo.create(event, session=uow.session)

        logger.info(
            f"{entity_type} {created['entity_id']}: {action} "
            f"{from_status or '-'} -> {created.get('to_status') or '-'} (v{created['version']})"
        )

        async def publish():
            await self.bus.publish(created)

        uow.after_commit(publish)
        return created

    async def list_events(
            self,
            actor: Dict[str, Any],
            since: Optional[datetime] = None,
            entity_type: Optional[str] = None,
            entity_id: Optional[str] = None,
            skip: int = 0,
            limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Get the change feed visible to the actor.

        Admins and storekeepers see every event; other users see events on
        entities they take part in or that belong to their department (deans:
        their college's departments).

        Args:
            actor: Current user
            since: Only events newer than this instant
            entity_type: Filter by entity type
            entity_id: Filter by entity ID
            skip: Number of events to skip
            limit: Maximum number of events to return

        Returns:
            List of event documents, oldest first
        """
        return await self.event_repo.find_since(
            since=DateTimeHandler.ensure_utc(since),
            scope=await self._visibility_scope(actor),
            entity_type=entity_type,
            entity_id=entity_id,
            skip=skip,
            limit=limit,
        )

    async def _visibility_scope(self, actor: Dict[str, Any]) -> Dict[str, Any]:
        role = actor.get("role")
        if role in (Role.ADMIN.value, Role.STOREKEEPER.value):
            return {}

        department_ids: List[str] = []
        if role == Role.COLLEGE_DEAN.value and actor.get("college_id"):
            department_ids = await organization_service.get_department_ids_for_college(actor["college_id"])
        elif role == Role.DEPARTMENT_HEAD.value and actor.get("department_id"):
            department_ids = [actor["department_id"]]

        clauses: List[Dict[str, Any]] = [{"participant_ids": str(actor["_id"])}]
        if department_ids:
            clauses.append({"department_ids": {"$in": department_ids}})
        return {"$or": clauses}


# Create global instance
event_service = WorkflowEventService()
