"""
Transfer service: custody hand-over of an allocated item from one user to another.

Same-department transfers go storekeeper -> receiver. Transfers that cross a
department boundary first need the receiving department's head and its
college's dean.
"""
import logging
from typing import Any, Dict, List, Optional

from asset_guardian.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    WorkflowValidationError,
)
from asset_guardian.core.permissions import Role
from asset_guardian.db.unit_of_work import UnitOfWork
from asset_guardian.domains.items.repository import ItemRepository
from asset_guardian.domains.items.service import item_service
from asset_guardian.domains.notifications.service import notification_service
from asset_guardian.domains.organization.service import organization_service
from asset_guardian.domains.returns.repository import ReturnRequestRepository
from asset_guardian.domains.transfers.repository import TransferRepository
from asset_guardian.domains.users.repository import UserRepository
from asset_guardian.models.item import ItemStatus
from asset_guardian.models.notification import NotificationType
from asset_guardian.models.transfer import TransferModel, TransferStatus, TransferType
from asset_guardian.models.workflow_event import EntityType
from asset_guardian.utils.datetime_handler import DateTimeHandler
from asset_guardian.workflow.service import WorkflowService
from asset_guardian.workflow.state_machine import (
    RECEIVER,
    TRANSFER_MACHINE,
    Action,
    initial_transfer_status,
)

logger = logging.getLogger(__name__)

RECEIVER_REJECTION = "Rejected by receiver"


class TransferService(WorkflowService):
    """
    Service for item transfers.
    """

    machine = TRANSFER_MACHINE
    entity_type = EntityType.TRANSFER.value

    def __init__(
            self,
            transfer_repo: Optional[TransferRepository] = None,
            item_repo: Optional[ItemRepository] = None,
            user_repo: Optional[UserRepository] = None,
            return_repo: Optional[ReturnRequestRepository] = None
    ):
        self.repo = transfer_repo or TransferRepository()
        self.item_repo = item_repo or ItemRepository()
        self.user_repo = user_repo or UserRepository()
        self.return_repo = return_repo or ReturnRequestRepository()

    def participants(self, transfer):
        return (transfer.get("initiator_id"), transfer.get("receiver_id"), transfer.get("dept_head_approver_id"),
                transfer.get("dean_approver_id"), transfer.get("storekeeper_approver_id"))

    def departments(self, transfer):
        return (transfer.get("initiator_department_id"), transfer.get("receiver_department_id"))

    async def create_transfer(
            self,
            initiator: Dict[str, Any],
            item_id: str,
            receiver_id: str,
            reason: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Ask to hand an item the initiator holds over to another user.

        Args:
            initiator: Current custodian of the item
            item_id: Item to transfer
            receiver_id: User who will receive the item
            reason: Reason for the transfer

        Returns:
            Created transfer document

        Raises:
            NotFoundError: If the item or an active receiver does not exist
            ForbiddenError: If the item is not allocated to the initiator
            WorkflowValidationError: If the receiver is the initiator
            ConflictError: If the item already has an open transfer or a pending return
        """
        initiator_id = str(initiator["_id"])
        item = await self.item_repo.get_by_id(item_id)
        if item["status"] != ItemStatus.ALLOCATED.value or item.get("current_custodian_id") != initiator_id:
            raise ForbiddenError("You can only transfer items currently allocated to you")

        if receiver_id == initiator_id:
            raise WorkflowValidationError("You cannot transfer an item to yourself")

        receiver = await self.user_repo.find_by_id(receiver_id)
        if not receiver or not receiver.get("is_active", True):
            raise NotFoundError(f"User with ID {receiver_id} not found")

        initiator_department_id = initiator.get("department_id")
        receiver_department_id = receiver.get("department_id")
        transfer = TransferModel(
            item_id=item["_id"],
            initiator_id=initiator_id,
            receiver_id=receiver["_id"],
            initiator_department_id=initiator_department_id,
            receiver_department_id=receiver_department_id,
            approving_department_id=receiver_department_id or initiator_department_id,
            transfer_type=await self._transfer_type(initiator_department_id, receiver_department_id),
            reason=reason,
            status=initial_transfer_status(initiator_department_id, receiver_department_id),
        ).to_document()

        async with UnitOfWork() as uow:
            if await self.repo.find_open_for_item(item["_id"], session=uow.session):
                raise ConflictError("This item already has a transfer in progress")
            if await self.return_repo.find_pending_for_item(item["_id"], session=uow.session):
                raise ConflictError("This item has a pending return to the store")

            created = await self.repo.create(transfer, session=uow.session)
            await self.record_created(uow, created, initiator, comment=reason)
            await self._notify_next_stage(created, item, session=uow.session)

        logger.info(f"Transfer {created['_id']} of item {item['_id']} from {initiator_id} to {receiver['_id']} "
                    f"created at {created['status']} ({created['transfer_type']})")
        return created

    async def get_transfer(self, transfer_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Get a transfer the actor may see.

        Raises:
            NotFoundError: If the transfer does not exist
            ForbiddenError: If the transfer is outside the actor's scope
        """
        transfer = await self.repo.get_by_id(transfer_id)
        if not await self._can_view(transfer, actor):
            raise ForbiddenError("You do not have access to this transfer")
        return transfer

    async def get_transfers(self, actor: Dict[str, Any], status: Optional[str] = None,
                            skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        """
        List transfers visible to the actor, newest first.
        """
        user_id = str(actor["_id"])
        clauses: List[Dict[str, Any]] = [{"initiator_id": user_id}, {"receiver_id": user_id}]

        department_ids = await self._scope_department_ids(actor)
        if department_ids is None:
            clauses = []
        elif department_ids:
            clauses.append({"initiator_department_id": {"$in": department_ids}})
            clauses.append({"receiver_department_id": {"$in": department_ids}})

        query: Dict[str, Any] = {"$or": clauses} if clauses else {}
        if status:
            query["status"] = status

        return await self.repo.find_many(query, skip, limit, sort_by="created_at", sort_desc=True)

    async def get_my_transfers(self, actor: Dict[str, Any], skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.repo.find_by_initiator(str(actor["_id"]), skip, limit)

    async def get_incoming_transfers(self, actor: Dict[str, Any], skip: int = 0,
                                     limit: int = 100) -> List[Dict[str, Any]]:
        """Transfers waiting for the actor to accept or reject them."""
        return await self.repo.find_by_receiver(
            str(actor["_id"]), TransferStatus.PENDING_RECEIVER_ACCEPTANCE.value, skip, limit
        )

    async def get_approval_queue(self, actor: Dict[str, Any], skip: int = 0,
                                 limit: int = 100) -> List[Dict[str, Any]]:
        """
        Transfers waiting on the actor's role, within the actor's scope.
        """
        statuses = self.machine.statuses_for_role(actor.get("role"))
        if not statuses:
            return []

        department_ids = await self._scope_department_ids(actor)
        return await self.repo.find_in_statuses(statuses, department_ids, skip, limit)

    async def approve_dept_head(self, transfer_id: str, actor: Dict[str, Any], comment: Optional[str] = None,
                                expected_version: Optional[int] = None) -> Dict[str, Any]:
        return await self._decide(transfer_id, actor, Action.APPROVE, comment, expected_version,
                                  TransferStatus.PENDING_DEPT_HEAD_APPROVAL.value)

    async def approve_dean(self, transfer_id: str, actor: Dict[str, Any], comment: Optional[str] = None,
                           expected_version: Optional[int] = None) -> Dict[str, Any]:
        return await self._decide(transfer_id, actor, Action.APPROVE, comment, expected_version,
                                  TransferStatus.PENDING_DEAN_APPROVAL.value)

    async def approve_storekeeper(self, transfer_id: str, actor: Dict[str, Any], comment: Optional[str] = None,
                                  expected_version: Optional[int] = None) -> Dict[str, Any]:
        return await self._decide(transfer_id, actor, Action.APPROVE, comment, expected_version,
                                  TransferStatus.PENDING_STOREKEEPER.value)

    async def accept_receiver(self, transfer_id: str, actor: Dict[str, Any], comment: Optional[str] = None,
                              expected_version: Optional[int] = None) -> Dict[str, Any]:
        """
        Receiver accepts: item custody, owning department and the transfer status change together.

        The item write only applies while the initiator still holds the item.

        Args:
            transfer_id: Transfer ID
            actor: The receiver
            comment: Optional comment
            expected_version: Version the caller read, if any

        Returns:
            Completed transfer document

        Raises:
            ForbiddenError: If the actor is not the receiver
            ConflictError: If item custody or the transfer changed concurrently
        """
        return await self._decide(transfer_id, actor, Action.APPROVE, comment, expected_version,
                                  TransferStatus.PENDING_RECEIVER_ACCEPTANCE.value)

    async def reject_receiver(self, transfer_id: str, actor: Dict[str, Any], comment: Optional[str] = None,
                              expected_version: Optional[int] = None) -> Dict[str, Any]:
        """Receiver declines the item; the item stays with the initiator."""
        return await self._decide(transfer_id, actor, Action.REJECT, comment or RECEIVER_REJECTION,
                                  expected_version, TransferStatus.PENDING_RECEIVER_ACCEPTANCE.value)

    async def reject(self, transfer_id: str, actor: Dict[str, Any], comment: Optional[str] = None,
                     expected_version: Optional[int] = None) -> Dict[str, Any]:
        return await self._decide(transfer_id, actor, Action.REJECT, comment, expected_version)

    async def advance(self, transfer_id: str, actor: Dict[str, Any], decision: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply an approve or reject decision to the transfer's current stage.

        Args:
            transfer_id: Transfer ID
            actor: Deciding user
            decision: action, optional comment, optional expected_version

        Returns:
            Updated transfer document
        """
        return await self._decide(transfer_id, actor, decision.get("action"), decision.get("comment"),
                                  decision.get("expected_version"))

    async def _decide(
            self,
            transfer_id: str,
            actor: Dict[str, Any],
            action,
            comment: Optional[str],
            expected_version: Optional[int],
            required_status: Optional[str] = None
    ) -> Dict[str, Any]:
        transfer = await self.repo.get_by_id(transfer_id)
        status = transfer["status"]

        at_receiver = status == TransferStatus.PENDING_RECEIVER_ACCEPTANCE.value
        acting_role = actor.get("role")
        if at_receiver:
            if transfer["receiver_id"] != str(actor["_id"]):
                raise ForbiddenError("Only the receiver can accept or reject this transfer")
            acting_role = RECEIVER

        transition = self.machine.resolve(status, acting_role, action)
        if required_status and status != required_status:
            raise ConflictError(f"Transfer is at {status}, not {required_status}")
        self.check_version(transfer, expected_version)
        await self._ensure_scope(transfer, actor, acting_role)

        if at_receiver and transition.is_rejection and not comment:
            comment = RECEIVER_REJECTION

        async with UnitOfWork() as uow:
            changes: Dict[str, Any] = {}
            completing = transition.to_status == TransferStatus.COMPLETED.value
            if completing:
                await item_service.reassign_custody(
                    uow,
                    transfer["item_id"],
                    transfer["initiator_id"],
                    transfer["receiver_id"],
                    transfer.get("receiver_department_id"),
                    actor,
                )
                changes["completed_at"] = DateTimeHandler.get_current_datetime()
            if self.machine.is_terminal(transition.to_status):
                changes["is_open"] = False

            action_name = transition.action.value
            if at_receiver:
                action_name = "reject" if transition.is_rejection else "accept"

            updated = await self.persist_transition(uow, transfer, transition, actor, changes, comment, action_name)
            await self._notify_status_change(updated, session=uow.session)
            if not transition.is_rejection and not completing:
                await self._notify_next_stage(updated, session=uow.session)

        logger.info(f"Transfer {transfer_id}: {acting_role} {actor['_id']} {action_name} "
                    f"({transition.from_status} -> {transition.to_status})")
        return updated

    async def _transfer_type(self, initiator_department_id: Optional[str],
                             receiver_department_id: Optional[str]) -> str:
        if initiator_department_id == receiver_department_id:
            return TransferType.INTRA_DEPARTMENT.value

        initiator_college = await organization_service.get_department_college_id(initiator_department_id)
        receiver_college = await organization_service.get_department_college_id(receiver_department_id)
        if initiator_college and initiator_college == receiver_college:
            return TransferType.INTER_DEPARTMENT.value
        return TransferType.INTER_COLLEGE.value

    @staticmethod
    def _approving_department_id(transfer: Dict[str, Any]) -> Optional[str]:
        """Receiving department signs off; the initiator's when the receiver has none."""
        return (transfer.get("approving_department_id")
                or transfer.get("receiver_department_id")
                or transfer.get("initiator_department_id"))

    async def _ensure_scope(self, transfer: Dict[str, Any], actor: Dict[str, Any], acting_role: str) -> None:
        department_id = self._approving_department_id(transfer)
        if acting_role == Role.DEPARTMENT_HEAD.value:
            organization_service.ensure_department_head_of(actor, department_id)
        elif acting_role == Role.COLLEGE_DEAN.value:
            await organization_service.ensure_dean_of(actor, department_id)

    async def _scope_department_ids(self, actor: Dict[str, Any]) -> Optional[List[str]]:
        """Departments the actor oversees; None means every transfer is visible."""
        role = actor.get("role")
        if role in (Role.ADMIN.value, Role.STOREKEEPER.value):
            return None
        if role == Role.DEPARTMENT_HEAD.value and actor.get("department_id"):
            return [actor["department_id"]]
        if role == Role.COLLEGE_DEAN.value and actor.get("college_id"):
            return await organization_service.get_department_ids_for_college(actor["college_id"])
        return []

    async def _can_view(self, transfer: Dict[str, Any], actor: Dict[str, Any]) -> bool:
        user_id = str(actor["_id"])
        if user_id in (transfer["initiator_id"], transfer["receiver_id"]):
            return True
        department_ids = await self._scope_department_ids(actor)
        if department_ids is None:
            return True
        return bool({transfer.get("initiator_department_id"), transfer.get("receiver_department_id")}
                    & set(department_ids))

    async def _notify_status_change(self, transfer: Dict[str, Any], session=None) -> None:
        status = transfer["status"]
        if status == TransferStatus.REJECTED.value:
            reason = f": {transfer['rejection_reason']}" if transfer.get("rejection_reason") else ""
            await notification_service.notify(
                transfer["initiator_id"], "Transfer rejected", f"Your transfer request was rejected{reason}",
                NotificationType.ERROR, self.entity_type, transfer["_id"], session=session,
            )
        elif status == TransferStatus.COMPLETED.value:
            await notification_service.notify_many(
                [transfer["initiator_id"], transfer["receiver_id"]],
                "Transfer completed", "The item transfer has been completed",
                NotificationType.SUCCESS, self.entity_type, transfer["_id"], session=session,
            )
        else:
            await notification_service.notify(
                transfer["initiator_id"], "Transfer progressed",
                f"Your transfer request is now {status.replace('_', ' ')}",
                NotificationType.INFO, self.entity_type, transfer["_id"], session=session,
            )

    async def _notify_next_stage(self, transfer: Dict[str, Any], item: Optional[Dict[str, Any]] = None,
                                 session=None) -> None:
        status = transfer["status"]
        if status == TransferStatus.PENDING_RECEIVER_ACCEPTANCE.value:
            await notification_service.notify(
                transfer["receiver_id"], "Incoming transfer",
                "An item is being transferred to you and awaits your acceptance",
                NotificationType.APPROVAL, self.entity_type, transfer["_id"], session=session,
            )
            return

        stage_role = self.machine.stage_for(status).role
        query: Dict[str, Any] = {"role": stage_role, "is_active": True}
        department_id = self._approving_department_id(transfer)
        if stage_role == Role.DEPARTMENT_HEAD.value:
            query["department_id"] = department_id
        elif stage_role == Role.COLLEGE_DEAN.value:
            college_id = await organization_service.get_department_college_id(department_id, session=session)
            if not college_id:
                return
            query["college_id"] = college_id

        item_label = f" of {item['name']} ({item['asset_tag']})" if item else ""
        approvers = await self.user_repo.find_many(query, limit=1000, session=session)
        await notification_service.notify_many(
            [approver["_id"] for approver in approvers],
            "Transfer awaiting approval",
            f"A transfer{item_label} is awaiting your approval",
            NotificationType.APPROVAL, self.entity_type, transfer["_id"], session=session,
        )


# Create global instance
transfer_service = TransferService()
