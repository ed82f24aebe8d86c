"""
Item service: inventory management and the custody writes workflows build on.
"""
import logging
from typing import Any, Dict, List, Optional

from asset_guardian.core.exceptions import (
    ConflictError,
    NotFoundError,
    WorkflowValidationError,
)
from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import (
    ITEM_REQUESTS,
    ITEM_TRANSFERS,
    MAINTENANCE_REQUESTS,
    RETURN_REQUESTS,
)
from asset_guardian.db.unit_of_work import UnitOfWork
from asset_guardian.domains.events.service import event_service
from asset_guardian.domains.items.repository import ItemRepository
from asset_guardian.domains.notifications.service import notification_service
from asset_guardian.domains.users.repository import UserRepository
from asset_guardian.models.item import ItemModel, ItemStatus
from asset_guardian.models.notification import NotificationType
from asset_guardian.models.workflow_event import EntityType
from asset_guardian.utils.datetime_handler import DateTimeHandler

logger = logging.getLogger(__name__)

# Fields an item update may touch; status and custody change only through dedicated operations
DESCRIPTIVE_FIELDS = (
    "name", "description", "asset_tag", "serial_number", "category", "purchase_date", "purchase_cost",
)


class ItemService:
    """
    Service for item-related business logic.
    """

    def __init__(self, item_repo: Optional[ItemRepository] = None, user_repo: Optional[UserRepository] = None):
        """
        Initialize with item and user repositories.

        Args:
            item_repo: Optional item repository instance
            user_repo: Optional user repository instance
        """
        self.item_repo = item_repo or ItemRepository()
        self.user_repo = user_repo or UserRepository()
        self.reference_repos = [
            (BaseRepository(ITEM_REQUESTS), "item request"),
            (BaseRepository(ITEM_TRANSFERS), "transfer"),
            (BaseRepository(RETURN_REQUESTS), "return request"),
            (BaseRepository(MAINTENANCE_REQUESTS), "maintenance request"),
        ]

    async def get_items(
            self,
            skip: int = 0,
            limit: int = 100,
            status: Optional[str] = None,
            category: Optional[str] = None,
            custodian_id: Optional[str] = None,
            department_id: Optional[str] = None,
            search: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Get items with optional filtering.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            status: Filter by item status
            category: Filter by category
            custodian_id: Filter by current custodian
            department_id: Filter by owning department
            search: Case-insensitive match on name, asset tag or serial number

        Returns:
            List of item documents
        """
        query: Dict[str, Any] = {}

        if status:
            query["status"] = status

        if category:
            query["category"] = category

        if custodian_id:
            query["current_custodian_id"] = custodian_id

        if department_id:
            query["owner_department_id"] = department_id

        if search:
            pattern = {"$regex": search, "$options": "i"}
            query["$or"] = [{"name": pattern}, {"asset_tag": pattern}, {"serial_number": pattern}]

        return await self.item_repo.find_many(query, skip, limit, sort_by="created_at", sort_desc=True)

    async def get_item(self, item_id: str) -> Dict[str, Any]:
        return await self.item_repo.get_by_id(item_id)

    async def get_my_items(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self.item_repo.find_by_custodian(str(user["_id"]))

    async def get_stats(self, department_id: Optional[str] = None) -> Dict[str, int]:
        """
        Inventory counters.

        Args:
            department_id: Restrict to items owned by this department

        Returns:
            total, available, allocated, maintenance and damaged counts
        """
        counts = await self.item_repo.count_by_status(department_id)
        return {
            "total": sum(counts.values()),
            "available": counts[ItemStatus.AVAILABLE.value],
            "allocated": counts[ItemStatus.ALLOCATED.value],
            "maintenance": counts[ItemStatus.UNDER_MAINTENANCE.value],
            "damaged": counts[ItemStatus.DAMAGED.value],
        }

    async def create_item(self, item_data: Dict[str, Any], actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register a new item in the central store.

        Args:
            item_data: Item data
            actor: User creating the item

        Returns:
            Created item document

        Raises:
            ConflictError: If the asset tag or serial number is taken
            WorkflowValidationError: If the initial status breaks custody rules
        """
        await self._ensure_unique(item_data.get("asset_tag"), item_data.get("serial_number"))

        item = ItemModel(**item_data).to_document()
        self._check_custody(item["status"], item.get("current_custodian_id"))
        if item.get("current_custodian_id"):
            await self._get_active_user(item["current_custodian_id"])

        async with UnitOfWork() as uow:
            created = await self.item_repo.create(item, session=uow.session)
            await self._record(uow, created, "created", actor)

        logger.info(f"Created item {created['_id']} ({created['asset_tag']})")
        return created

    async def update_item(self, item_id: str, item_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update descriptive fields of an item.

        Args:
            item_id: Item ID
            item_data: Updated item data

        Returns:
            Updated item document

        Raises:
            NotFoundError: If the item does not exist
            ConflictError: If the new asset tag or serial number is taken
        """
        existing = await self.item_repo.get_by_id(item_id)
        changes = {k: v for k, v in item_data.items() if k in DESCRIPTIVE_FIELDS}

        asset_tag = changes.get("asset_tag")
        serial_number = changes.get("serial_number")
        await self._ensure_unique(
            asset_tag if asset_tag != existing.get("asset_tag") else None,
            serial_number if serial_number != existing.get("serial_number") else None,
        )

        if "purchase_date" in changes:
            changes["purchase_date"] = DateTimeHandler.date_to_datetime(changes["purchase_date"])

        return await self.item_repo.update(item_id, changes)

    async def change_status(
            self,
            item_id: str,
            new_status: str,
            actor: Dict[str, Any],
            expected_version: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Set an item's status directly, keeping custody consistent.

        `Available` clears the custodian. `Allocated` is only accepted for an
        item that still has a custodian; first allocations go through
        allocate_item.

        Args:
            item_id: Item ID
            new_status: Target status
            actor: User making the change
            expected_version: Version the caller read, if any

        Returns:
            Updated item document
        """
        item = await self.item_repo.get_by_id(item_id)
        self._check_version(item, expected_version)

        changes: Dict[str, Any] = {"status": new_status}
        if new_status == ItemStatus.AVAILABLE.value:
            changes["current_custodian_id"] = None
        elif new_status == ItemStatus.ALLOCATED.value and not item.get("current_custodian_id"):
            raise WorkflowValidationError("Item has no custodian; allocate it to a user instead")

        async with UnitOfWork() as uow:
            updated = await self.item_repo.compare_and_set(
                item_id, {"version": item["version"]}, changes, session=uow.session
            )
            if updated is None:
                raise self._conflict(item_id)
            await self._record(uow, updated, "status_changed", actor, from_status=item["status"])

        return updated

    async def allocate_item(self, item_id: str, custodian_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Hand an available item to a user; the item joins the user's department.

        Args:
            item_id: Item ID
            custodian_id: Receiving user
            actor: Storekeeper or admin making the allocation

        Returns:
            Updated item document
        """
        custodian = await self._get_active_user(custodian_id)

        async with UnitOfWork() as uow:
            updated = await self.allocate_available(
                uow, item_id, custodian["_id"], custodian.get("department_id"), actor
            )
            await notification_service.notify(
                custodian["_id"],
                "Item allocated",
                f"{updated['name']} ({updated['asset_tag']}) has been allocated to you",
                NotificationType.SUCCESS,
                EntityType.ITEM.value,
                updated["_id"],
                session=uow.session,
            )

        return updated

    async def return_to_store(self, item_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Put an item back into the central store outside the return workflow.

        Args:
            item_id: Item ID
            actor: Storekeeper or admin

        Returns:
            Updated item document
        """
        item = await self.item_repo.get_by_id(item_id)

        async with UnitOfWork() as uow:
            updated = await self.place_in_store(uow, item, actor)

        return updated

    async def delete_item(self, item_id: str) -> bool:
        """
        Physically delete an item that no workflow record references.

        Args:
            item_id: Item ID

        Returns:
            True if deleted

        Raises:
            NotFoundError: If the item does not exist
            ConflictError: If a request, transfer, return or maintenance record references it
        """
        item = await self.item_repo.get_by_id(item_id)

        for repo, label in self.reference_repos:
            query = {"$or": [{"item_id": item["_id"]}, {"allocated_item_ids": item["_id"]},
                             {"allocated_item_id": item["_id"]}]}
            if await repo.exists(query):
                raise ConflictError(f"Item is referenced by a {label} and cannot be deleted")

        deleted = await self.item_repo.delete(item_id)
        logger.warning(f"Item {item_id} ({item['asset_tag']}) deleted")
        return deleted

    # Custody writes used inside workflow transactions

    async def allocate_available(
            self,
            uow: UnitOfWork,
            item_id: str,
            custodian_id: str,
            department_id: Optional[str],
            actor: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Allocate an item that must still be Available.

        Raises:
            NotFoundError: If the item does not exist
            ConflictError: If the item is not available
        """
        item = await self.item_repo.find_by_id(item_id, session=uow.session)
        if not item:
            raise NotFoundError(f"Item with ID {item_id} not found")
        if item["status"] != ItemStatus.AVAILABLE.value:
            raise ConflictError(f"Item {item['asset_tag']} is not available (status: {item['status']})")

        updated = await self.item_repo.compare_and_set(
            item_id,
            {"status": ItemStatus.AVAILABLE.value, "version": item["version"]},
            {
                "status": ItemStatus.ALLOCATED.value,
                "current_custodian_id": custodian_id,
                "owner_department_id": department_id,
            },
            session=uow.session,
        )
        if updated is None:
            raise self._conflict(item_id)

        await self._record(uow, updated, "allocated", actor, from_status=item["status"],
                           participant_ids=[custodian_id])
        return updated

    async def create_allocated_item(
            self,
            uow: UnitOfWork,
            name: str,
            description: Optional[str],
            custodian_id: str,
            department_id: Optional[str],
            actor: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create a new item already allocated to its custodian."""
        suffix = DateTimeHandler.tag_suffix()
        item = ItemModel(
            name=name,
            description=description,
            asset_tag=f"AST-{suffix}",
            serial_number=f"DEPT-{suffix}",
            status=ItemStatus.ALLOCATED,
            current_custodian_id=custodian_id,
            owner_department_id=department_id,
        ).to_document()

        created = await self.item_repo.create(item, session=uow.session)
        await self._record(uow, created, "created", actor, participant_ids=[custodian_id])
        return created

    async def reassign_custody(
            self,
            uow: UnitOfWork,
            item_id: str,
            expected_custodian_id: str,
            new_custodian_id: str,
            new_department_id: Optional[str],
            actor: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Move custody of an item, provided it is still Allocated to `expected_custodian_id`.

        Raises:
            NotFoundError: If the item does not exist
            ConflictError: If custody or status changed since the workflow started
        """
        item = await self.item_repo.find_by_id(item_id, session=uow.session)
        if not item:
            raise NotFoundError(f"Item with ID {item_id} not found")
        if item["status"] != ItemStatus.ALLOCATED.value:
            logger.warning(f"Item {item_id} is {item['status']}; custody cannot move")
            raise ConflictError(f"Item is {item['status']} and cannot change hands")

        updated = await self.item_repo.compare_and_set(
            item_id,
            {
                "status": ItemStatus.ALLOCATED.value,
                "current_custodian_id": expected_custodian_id,
                "version": item["version"],
            },
            {
                "current_custodian_id": new_custodian_id,
                "owner_department_id": new_department_id,
            },
            session=uow.session,
        )
        if updated is None:
            logger.warning(f"Custody of item {item_id} changed; expected custodian {expected_custodian_id}")
            raise ConflictError("Item custody changed since the transfer was requested")

        await self._record(uow, updated, "custody_transferred", actor, from_status=item["status"],
                           participant_ids=[expected_custodian_id, new_custodian_id])
        return updated

    async def place_in_store(self, uow: UnitOfWork, item: Dict[str, Any], actor: Dict[str, Any]) -> Dict[str, Any]:
        """Make an item Available with no custodian and no owning department."""
        updated = await self.item_repo.compare_and_set(
            item["_id"],
            {"version": item["version"]},
            {
                "status": ItemStatus.AVAILABLE.value,
                "current_custodian_id": None,
                "owner_department_id": None,
            },
            session=uow.session,
        )
        if updated is None:
            raise self._conflict(item["_id"])

        await self._record(uow, updated, "returned_to_store", actor, from_status=item["status"],
                           participant_ids=[item.get("current_custodian_id")],
                           department_ids=[item.get("owner_department_id")])
        return updated

    async def set_status(
            self,
            uow: UnitOfWork,
            item: Dict[str, Any],
            new_status: str,
            actor: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Set the status of an item read earlier in the same unit of work."""
        updated = await self.item_repo.compare_and_set(
            item["_id"], {"version": item["version"]}, {"status": new_status}, session=uow.session
        )
        if updated is None:
            raise self._conflict(item["_id"])

        await self._record(uow, updated, "status_changed", actor, from_status=item["status"])
        return updated

    # Helpers

    async def _record(self, uow, item, action, actor, from_status=None, participant_ids=(), department_ids=()):
        await event_service.record(
            uow,
            EntityType.ITEM.value,
            item,
            action,
            actor,
            from_status=from_status,
            participant_ids=[item.get("current_custodian_id"), *participant_ids],
            department_ids=[item.get("owner_department_id"), *department_ids],
        )

    async def _ensure_unique(self, asset_tag: Optional[str], serial_number: Optional[str]) -> None:
        if asset_tag and await self.item_repo.asset_tag_exists(asset_tag):
            raise ConflictError(f"An item with asset tag {asset_tag} already exists")
        if serial_number and await self.item_repo.serial_number_exists(serial_number):
            raise ConflictError(f"An item with serial number {serial_number} already exists")

    async def _get_active_user(self, user_id: str) -> Dict[str, Any]:
        user = await self.user_repo.find_by_id(user_id)
        if not user or not user.get("is_active", True):
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    @staticmethod
    def _check_custody(status: str, custodian_id: Optional[str]) -> None:
        if status == ItemStatus.ALLOCATED.value and not custodian_id:
            raise WorkflowValidationError("An allocated item must have a custodian")
        if status == ItemStatus.AVAILABLE.value and custodian_id:
            raise WorkflowValidationError("An available item cannot have a custodian")

    @staticmethod
    def _check_version(item: Dict[str, Any], expected_version: Optional[int]) -> None:
        if expected_version is not None and item["version"] != expected_version:
            raise ConflictError(
                f"Item {item['_id']} is at version {item['version']}, not {expected_version}; refresh and retry"
            )

    @staticmethod
    def _conflict(item_id: Any) -> ConflictError:
        logger.warning(f"Concurrent modification of item {item_id}")
        return ConflictError("The item was modified concurrently, please refresh and retry")


# Create global instance
item_service = ItemService()
