"""
Shared mechanics for services that drive an entity through a state machine.
"""
import logging
from typing import Any, Dict, Iterable, Optional

from asset_guardian.core.exceptions import ConflictError
from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.unit_of_work import UnitOfWork
from asset_guardian.domains.events.service import event_service
from asset_guardian.utils.datetime_handler import DateTimeHandler
from asset_guardian.workflow.state_machine import StateMachine, Transition

logger = logging.getLogger(__name__)


class WorkflowService:
    """
    Base for request, transfer, return and maintenance services.

    Subclasses set `machine`, `entity_type` and `repo`, and say who takes
    part in an entity so its events reach the right feed readers.
    """

    machine: StateMachine
    entity_type: str
    repo: BaseRepository

    def participants(self, entity: Dict[str, Any]) -> Iterable[Optional[str]]:
        return ()

    def departments(self, entity: Dict[str, Any]) -> Iterable[Optional[str]]:
        return ()

    @staticmethod
    def check_version(entity: Dict[str, Any], expected_version: Optional[int]) -> None:
        """
        Raises:
            ConflictError: If the caller acted on a stale read
        """
        if expected_version is not None and entity["version"] != expected_version:
            raise ConflictError(
                f"Record {entity['_id']} is at version {entity['version']}, not {expected_version}; "
                f"refresh and retry"
            )

    @staticmethod
    def stage_changes(transition: Transition, actor: Dict[str, Any], comment: Optional[str] = None) -> Dict[str, Any]:
        """Fields stamped alongside the new status."""
        if transition.is_rejection:
            return {
                "rejection_reason": comment,
                "rejected_by_id": str(actor["_id"]),
                "rejected_at": DateTimeHandler.get_current_datetime(),
            }
        if transition.approver_field:
            return {transition.approver_field: str(actor["_id"])}
        return {}

    async def record_created(self, uow: UnitOfWork, entity: Dict[str, Any], actor: Dict[str, Any],
                             comment: Optional[str] = None) -> None:
        await event_service.record(
            uow, self.entity_type, entity, "created", actor, comment=comment,
            participant_ids=self.participants(entity), department_ids=self.departments(entity),
        )

    async def persist_transition(
            self,
            uow: UnitOfWork,
            entity: Dict[str, Any],
            transition: Transition,
            actor: Dict[str, Any],
            changes: Optional[Dict[str, Any]] = None,
            comment: Optional[str] = None,
            action: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Compare-and-set the entity from the status and version it was read in, then log the event.

        Args:
            uow: Active unit of work
            entity: Entity as read before the decision
            transition: Resolved transition
            actor: Acting user
            changes: Extra fields to write with the status
            comment: Decision comment for the event log
            action: Event action name (defaults to the transition's action)

        Returns:
            Updated entity document

        Raises:
            ConflictError: If the entity changed since it was read
        """
        update = {"status": transition.to_status}
        update.update(self.stage_changes(transition, actor, comment))
        update.update(changes or {})

        updated = await self.repo.compare_and_set(
            entity["_id"],
            {"status": transition.from_status, "version": entity["version"]},
            update,
            session=uow.session,
        )
        if updated is None:
            logger.warning(
                f"{self.entity_type} {entity['_id']} changed while {actor.get('role')} {actor['_id']} "
                f"was acting on {transition.from_status}"
            )
            raise ConflictError(
                f"The {self.machine.entity_type} was modified concurrently, please refresh and retry"
            )

        await event_service.record(
            uow,
            self.entity_type,
            updated,
            action or transition.action.value,
            actor,
            from_status=transition.from_status,
            comment=comment,
            participant_ids=self.participants(updated),
            department_ids=self.departments(updated),
        )
        return updated
