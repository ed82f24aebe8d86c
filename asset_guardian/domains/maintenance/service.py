"""
Maintenance service: items reported broken go to the workshop and come back repaired or damaged.
"""
import logging
from typing import Any, Dict, List, Optional

from asset_guardian.core.exceptions import ConflictError, ForbiddenError
from asset_guardian.core.permissions import Role
from asset_guardian.db.unit_of_work import UnitOfWork
from asset_guardian.domains.items.repository import ItemRepository
from asset_guardian.domains.items.service import item_service
from asset_guardian.domains.notifications.service import notification_service
from asset_guardian.domains.maintenance.repository import MaintenanceRequestRepository
from asset_guardian.domains.transfers.repository import TransferRepository
from asset_guardian.domains.users.service import user_service
from asset_guardian.models.item import ItemStatus
from asset_guardian.models.maintenance import MaintenanceRequestModel, MaintenanceStatus
from asset_guardian.models.notification import NotificationType
from asset_guardian.models.workflow_event import EntityType
from asset_guardian.utils.datetime_handler import DateTimeHandler
from asset_guardian.workflow.service import WorkflowService
from asset_guardian.workflow.state_machine import MAINTENANCE_MACHINE, Action

logger = logging.getLogger(__name__)

OUT_OF_SERVICE = (ItemStatus.UNDER_MAINTENANCE.value, ItemStatus.DAMAGED.value)


class MaintenanceService(WorkflowService):
    """
    Service for maintenance requests.
    """

    machine = MAINTENANCE_MACHINE
    entity_type = EntityType.MAINTENANCE.value

    def __init__(self, maintenance_repo: Optional[MaintenanceRequestRepository] = None,
                 item_repo: Optional[ItemRepository] = None,
                 transfer_repo: Optional[TransferRepository] = None):
        self.repo = maintenance_repo or MaintenanceRequestRepository()
        self.item_repo = item_repo or ItemRepository()
        self.transfer_repo = transfer_repo or TransferRepository()

    def participants(self, maintenance):
        return maintenance.get("requester_id"), maintenance.get("processed_by_id")

    @staticmethod
    def stage_changes(transition, actor, comment=None):
        # Unrepairable is an outcome, not a refusal; notes go to resolution_notes
        return {}

    async def create_maintenance(self, requester: Dict[str, Any], maintenance_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Report an item for maintenance and take it out of service.

        Args:
            requester: Custodian of the item, or a storekeeper / admin
            maintenance_data: item_id, maintenance_type, issue_description, urgency

        Returns:
            Created maintenance request document

        Raises:
            NotFoundError: If the item does not exist
            ForbiddenError: If the requester neither holds the item nor manages inventory
            ConflictError: If the item is already under maintenance or damaged, or is being transferred
        """
        item = await self.item_repo.get_by_id(maintenance_data["item_id"])
        requester_id = str(requester["_id"])
        manages_inventory = requester.get("role") in (Role.ADMIN.value, Role.STOREKEEPER.value)
        if item.get("current_custodian_id") != requester_id and not manages_inventory:
            raise ForbiddenError("You can only report items allocated to you")

        if item["status"] in OUT_OF_SERVICE:
            raise ConflictError(f"Item is already {item['status']}")

        maintenance = MaintenanceRequestModel(
            **{**maintenance_data, "item_id": item["_id"]},
            requester_id=requester_id,
            previous_item_status=item["status"],
        ).to_document()

        async with UnitOfWork() as uow:
            if await self.repo.find_pending_for_item(item["_id"], session=uow.session):
                raise ConflictError("A maintenance request for this item is already pending")
            if await self.transfer_repo.find_open_for_item(item["_id"], session=uow.session):
                raise ConflictError("This item has a transfer in progress")

            await item_service.set_status(uow, item, ItemStatus.UNDER_MAINTENANCE.value, requester)
            created = await self.repo.create(maintenance, session=uow.session)
            await self.record_created(uow, created, requester, comment=created["issue_description"])
            await notification_service.notify_many(
                await user_service.get_active_user_ids_by_role(Role.STOREKEEPER, session=uow.session),
                "Maintenance requested",
                f"{item['name']} ({item['asset_tag']}) needs {created['maintenance_type']}: "
                f"{created['issue_description']}",
                NotificationType.WARNING, self.entity_type, created["_id"], session=uow.session,
            )

        logger.info(f"Maintenance {created['_id']} opened for item {item['_id']} by {requester_id}")
        return created

    async def get_maintenance(self, maintenance_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        maintenance = await self.repo.get_by_id(maintenance_id)
        if not self._sees_all(actor) and maintenance["requester_id"] != str(actor["_id"]):
            raise ForbiddenError("You do not have access to this maintenance request")
        return maintenance

    async def get_maintenance_requests(self, actor: Dict[str, Any], status: Optional[str] = None,
                                       item_id: Optional[str] = None, skip: int = 0,
                                       limit: int = 100) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if not self._sees_all(actor):
            query["requester_id"] = str(actor["_id"])
        if status:
            query["status"] = status
        if item_id:
            query["item_id"] = item_id
        return await self.repo.find_many(query, skip, limit, sort_by="created_at", sort_desc=True)

    async def complete_maintenance(self, maintenance_id: str, actor: Dict[str, Any],
                                   resolution_notes: Optional[str] = None,
                                   expected_version: Optional[int] = None) -> Dict[str, Any]:
        """
        Close a repair: the item goes back to its custodian, or to Available if it has none.
        """
        return await self._resolve(maintenance_id, actor, Action.APPROVE, resolution_notes, expected_version)

    async def mark_unrepairable(self, maintenance_id: str, actor: Dict[str, Any],
                                resolution_notes: Optional[str] = None,
                                expected_version: Optional[int] = None) -> Dict[str, Any]:
        """Close a repair as failed: the item becomes Damaged."""
        return await self._resolve(maintenance_id, actor, Action.REJECT, resolution_notes, expected_version)

    async def _resolve(self, maintenance_id: str, actor: Dict[str, Any], action: Action,
                       resolution_notes: Optional[str], expected_version: Optional[int]) -> Dict[str, Any]:
        maintenance = await self.repo.get_by_id(maintenance_id)
        transition = self.machine.resolve(maintenance["status"], actor.get("role"), action)
        self.check_version(maintenance, expected_version)

        async with UnitOfWork() as uow:
            item = await self.item_repo.find_by_id(maintenance["item_id"], session=uow.session)
            if not item:
                raise ConflictError("The item under maintenance no longer exists")

            if transition.is_rejection:
                item_status = ItemStatus.DAMAGED.value
            elif item.get("current_custodian_id"):
                item_status = ItemStatus.ALLOCATED.value
            else:
                item_status = ItemStatus.AVAILABLE.value
            await item_service.set_status(uow, item, item_status, actor)

            changes = {
                "resolution_notes": resolution_notes,
                "processed_by_id": str(actor["_id"]),
                "processed_at": DateTimeHandler.get_current_datetime(),
            }
            action_name = "unrepairable" if transition.is_rejection else "complete"
            updated = await self.persist_transition(
                uow, maintenance, transition, actor, changes, resolution_notes, action_name
            )

            await notification_service.notify(
                updated["requester_id"],
                "Maintenance finished",
                f"Maintenance request closed as {updated['status']}; the item is now {item_status}",
                NotificationType.ERROR if transition.is_rejection else NotificationType.SUCCESS,
                self.entity_type, updated["_id"], session=uow.session,
            )

        logger.info(f"Maintenance {maintenance_id}: {transition.from_status} -> {transition.to_status}, "
                    f"item {item['_id']} -> {item_status}")
        return updated

    @staticmethod
    def _sees_all(actor: Dict[str, Any]) -> bool:
        return actor.get("role") in (Role.ADMIN.value, Role.STOREKEEPER.value)


# Create global instance
maintenance_service = MaintenanceService()
