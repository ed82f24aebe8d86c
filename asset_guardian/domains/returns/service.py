"""
Return service: custodians hand items back to the central store.
"""
import logging
from typing import Any, Dict, List, Optional

from asset_guardian.core.exceptions import ConflictError, ForbiddenError
from asset_guardian.core.permissions import Role
from asset_guardian.db.unit_of_work import UnitOfWork
from asset_guardian.domains.items.repository import ItemRepository
from asset_guardian.domains.items.service import item_service
from asset_guardian.domains.notifications.service import notification_service
from asset_guardian.domains.returns.repository import ReturnRequestRepository
from asset_guardian.domains.transfers.repository import TransferRepository
from asset_guardian.domains.users.service import user_service
from asset_guardian.models.notification import NotificationType
from asset_guardian.models.return_request import ReturnRequestModel
from asset_guardian.models.workflow_event import EntityType
from asset_guardian.utils.datetime_handler import DateTimeHandler
from asset_guardian.workflow.service import WorkflowService
from asset_guardian.workflow.state_machine import RETURN_MACHINE, Action

logger = logging.getLogger(__name__)


class ReturnService(WorkflowService):
    """
    Service for return requests.
    """

    machine = RETURN_MACHINE
    entity_type = EntityType.RETURN.value

    def __init__(self, return_repo: Optional[ReturnRequestRepository] = None,
                 item_repo: Optional[ItemRepository] = None,
                 transfer_repo: Optional[TransferRepository] = None):
        self.repo = return_repo or ReturnRequestRepository()
        self.item_repo = item_repo or ItemRepository()
        self.transfer_repo = transfer_repo or TransferRepository()

    def participants(self, return_request):
        return return_request.get("requester_id"), return_request.get("processed_by_id")

    async def create_return(self, requester: Dict[str, Any], item_id: str,
                            reason: Optional[str] = None) -> Dict[str, Any]:
        """
        Ask to return an item to the central store.

        Args:
            requester: Current custodian of the item
            item_id: Item to return
            reason: Reason for the return

        Returns:
            Created return request document

        Raises:
            NotFoundError: If the item does not exist
            ForbiddenError: If the requester does not hold the item
            ConflictError: If a return or a transfer for the item is already open
        """
        item = await self.item_repo.get_by_id(item_id)
        if item.get("current_custodian_id") != str(requester["_id"]):
            raise ForbiddenError("You can only return items allocated to you")

        return_request = ReturnRequestModel(
            item_id=item["_id"], requester_id=str(requester["_id"]), reason=reason
        ).to_document()

        async with UnitOfWork() as uow:
            if await self.repo.find_pending_for_item(item["_id"], session=uow.session):
                raise ConflictError("A return for this item is already pending")
            if await self.transfer_repo.find_open_for_item(item["_id"], session=uow.session):
                raise ConflictError("This item has a transfer in progress")

            created = await self.repo.create(return_request, session=uow.session)
            await self.record_created(uow, created, requester, comment=reason)
            await notification_service.notify_many(
                await user_service.get_active_user_ids_by_role(Role.STOREKEEPER, session=uow.session),
                "Return requested",
                f"{requester.get('full_name', 'A user')} wants to return {item['name']} ({item['asset_tag']})",
                NotificationType.APPROVAL, self.entity_type, created["_id"], session=uow.session,
            )

        logger.info(f"Return {created['_id']} of item {item['_id']} requested by {requester['_id']}")
        return created

    async def get_return(self, return_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        return_request = await self.repo.get_by_id(return_id)
        if not self._sees_all(actor) and return_request["requester_id"] != str(actor["_id"]):
            raise ForbiddenError("You do not have access to this return request")
        return return_request

    async def get_returns(self, actor: Dict[str, Any], status: Optional[str] = None,
                          skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if not self._sees_all(actor):
            query["requester_id"] = str(actor["_id"])
        if status:
            query["status"] = status
        return await self.repo.find_many(query, skip, limit, sort_by="created_at", sort_desc=True)

    async def approve_return(self, return_id: str, actor: Dict[str, Any], comment: Optional[str] = None,
                             expected_version: Optional[int] = None) -> Dict[str, Any]:
        """
        Accept the item back: it becomes Available in the central store.

        Raises:
            ConflictError: If the requester no longer holds the item
        """
        return await self.decide(return_id, actor, {
            "action": Action.APPROVE.value, "comment": comment, "expected_version": expected_version,
        })

    async def reject_return(self, return_id: str, actor: Dict[str, Any], comment: Optional[str] = None,
                            expected_version: Optional[int] = None) -> Dict[str, Any]:
        return await self.decide(return_id, actor, {
            "action": Action.REJECT.value, "comment": comment, "expected_version": expected_version,
        })

    async def decide(self, return_id: str, actor: Dict[str, Any], decision: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a storekeeper decision to a pending return.

        Args:
            return_id: Return request ID
            actor: Deciding storekeeper
            decision: action, optional comment, optional expected_version

        Returns:
            Updated return request document
        """
        return_request = await self.repo.get_by_id(return_id)
        transition = self.machine.resolve(return_request["status"], actor.get("role"), decision.get("action"))
        self.check_version(return_request, decision.get("expected_version"))
        comment = decision.get("comment")

        async with UnitOfWork() as uow:
            if not transition.is_rejection:
                item = await self.item_repo.find_by_id(return_request["item_id"], session=uow.session)
                if not item or item.get("current_custodian_id") != return_request["requester_id"]:
                    raise ConflictError("The item is no longer held by the requester")
                await item_service.place_in_store(uow, item, actor)

            changes = {"processed_by_id": str(actor["_id"]), "processed_at": DateTimeHandler.get_current_datetime()}
            updated = await self.persist_transition(uow, return_request, transition, actor, changes, comment)

            if transition.is_rejection:
                reason = f": {comment}" if comment else ""
                await notification_service.notify(
                    updated["requester_id"], "Return rejected", f"Your return request was rejected{reason}",
                    NotificationType.ERROR, self.entity_type, updated["_id"], session=uow.session,
                )
            else:
                await notification_service.notify(
                    updated["requester_id"], "Return approved", "Your item has been returned to the central store",
                    NotificationType.SUCCESS, self.entity_type, updated["_id"], session=uow.session,
                )

        logger.info(f"Return {return_id}: {transition.from_status} -> {transition.to_status} by {actor['_id']}")
        return updated

    @staticmethod
    def _sees_all(actor: Dict[str, Any]) -> bool:
        return actor.get("role") in (Role.ADMIN.value, Role.STOREKEEPER.value)


# Create global instance
return_service = ReturnService()
