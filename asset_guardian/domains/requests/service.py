"""
Item request service: creation and the department head -> dean -> storekeeper approval chain.
"""
import logging
from typing import Any, Dict, List, Optional

from asset_guardian.core.exceptions import ForbiddenError, WorkflowValidationError
from asset_guardian.core.permissions import Role
from asset_guardian.db.unit_of_work import UnitOfWork
from asset_guardian.domains.items.service import item_service
from asset_guardian.domains.notifications.service import notification_service
from asset_guardian.domains.organization.service import organization_service
from asset_guardian.domains.requests.repository import ItemRequestRepository
from asset_guardian.domains.users.repository import UserRepository
from asset_guardian.models.item_request import ItemRequestModel, RequestStatus
from asset_guardian.models.notification import NotificationType
from asset_guardian.models.workflow_event import EntityType
from asset_guardian.workflow.service import WorkflowService
from asset_guardian.workflow.state_machine import REQUEST_MACHINE, initial_request_status

logger = logging.getLogger(__name__)

STAGE_LABELS = {
    RequestStatus.PENDING_DEPT_HEAD.value: "department head approval",
    RequestStatus.PENDING_DEAN.value: "dean approval",
    RequestStatus.PENDING_STOREKEEPER.value: "storekeeper allocation",
}


class RequestService(WorkflowService):
    """
    Service for item requests.
    """

    machine = REQUEST_MACHINE
    entity_type = EntityType.REQUEST.value

    def __init__(self, request_repo: Optional[ItemRequestRepository] = None,
                 user_repo: Optional[UserRepository] = None):
        """
        Initialize with request and user repositories.

        Args:
            request_repo: Optional request repository instance
            user_repo: Optional user repository instance
        """
        self.repo = request_repo or ItemRequestRepository()
        self.user_repo = user_repo or UserRepository()

    def participants(self, request):
        return (request.get("requester_id"), request.get("dept_head_approver_id"),
                request.get("dean_approver_id"), request.get("storekeeper_allocator_id"))

    def departments(self, request):
        return (request.get("requester_department_id"),)

    async def create_request(self, actor: Dict[str, Any], request_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Submit an item request.

        Requests from department heads skip their own stage and start at dean approval.

        Args:
            actor: Requesting user
            request_data: item_name, item_description, justification, quantity, urgency

        Returns:
            Created request document

        Raises:
            ForbiddenError: If the actor's role cannot submit requests
            WorkflowValidationError: If the actor has no department
        """
        role = actor.get("role")
        if role not in (Role.STAFF.value, Role.DEPARTMENT_HEAD.value):
            raise ForbiddenError("Only staff and department heads can submit item requests")
        if not actor.get("department_id"):
            raise WorkflowValidationError("You must belong to a department to submit a request")

        request = ItemRequestModel(
            **request_data,
            requester_id=str(actor["_id"]),
            requester_department_id=actor["department_id"],
            requester_role=role,
            status=initial_request_status(role),
        ).to_document()
        if role == Role.DEPARTMENT_HEAD.value:
            request["dept_head_approver_id"] = str(actor["_id"])

        async with UnitOfWork() as uow:
            created = await self.repo.create(request, session=uow.session)
            await self.record_created(uow, created, actor)
            await self._notify_next_stage(created, session=uow.session)

        logger.info(f"Request {created['_id']} for {created['quantity']} x {created['item_name']} "
                    f"created by {role} {actor['_id']} at {created['status']}")
        return created

    async def get_request(self, request_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Get a request the actor may see.

        Raises:
            NotFoundError: If the request does not exist
            ForbiddenError: If the request is outside the actor's scope
        """
        request = await self.repo.get_by_id(request_id)
        if not await self._can_view(request, actor):
            raise ForbiddenError("You do not have access to this request")
        return request

    async def get_requests(
            self,
            actor: Dict[str, Any],
            status: Optional[str] = None,
            skip: int = 0,
            limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        List requests visible to the actor.

        Args:
            actor: Current user
            status: Filter by status
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of request documents, newest first
        """
        query: Dict[str, Any] = {}
        department_ids = await self._scope_department_ids(actor)
        if department_ids is not None:
            query["requester_department_id"] = {"$in": department_ids}
        elif actor.get("role") == Role.STAFF.value:
            query["requester_id"] = str(actor["_id"])

        if status:
            query["status"] = status

        return await self.repo.find_many(query, skip, limit, sort_by="created_at", sort_desc=True)

    async def get_my_requests(self, actor: Dict[str, Any], skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.repo.find_by_requester(str(actor["_id"]), skip, limit)

    async def get_approval_queue(self, actor: Dict[str, Any], skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Requests waiting on the actor's role, within the actor's scope.

        Args:
            actor: Current user
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of pending request documents, oldest first
        """
        statuses = self.machine.statuses_for_role(actor.get("role"))
        if not statuses:
            return []
        return await self.repo.find_in_statuses(statuses, await self._scope_department_ids(actor), skip, limit)

    async def advance(self, request_id: str, actor: Dict[str, Any], decision: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply an approve or reject decision to the request's current stage.

        Args:
            request_id: Request ID
            actor: Deciding user
            decision: action, optional comment, item_ids for storekeeper allocation
                      of staff requests, optional expected_version

        Returns:
            Updated request document

        Raises:
            NotFoundError: If the request or a chosen item does not exist
            AlreadyTerminalError: If the request is approved or rejected
            InvalidStageError: If the actor's role does not act on the current stage
            ForbiddenError: If the requester's department is outside the actor's scope
            ConflictError: If the request or an item changed concurrently, or an item is not available
            WorkflowValidationError: If the decision payload is malformed
        """
        request = await self.repo.get_by_id(request_id)
        transition = self.machine.resolve(request["status"], actor.get("role"), decision.get("action"))
        self.check_version(request, decision.get("expected_version"))
        await self._ensure_scope(request, actor)

        comment = decision.get("comment")
        allocating = not transition.is_rejection and transition.to_status == RequestStatus.APPROVED.value
        item_ids = self._validate_item_ids(request, decision.get("item_ids")) if allocating else []

        async with UnitOfWork() as uow:
            changes: Dict[str, Any] = {}
            if allocating:
                changes = await self._allocate(uow, request, item_ids, actor)

            updated = await self.persist_transition(uow, request, transition, actor, changes, comment)
            await self._notify_requester(updated, transition.is_rejection, session=uow.session)
            if not transition.is_rejection:
                await self._notify_next_stage(updated, session=uow.session)

        logger.info(f"Request {request_id}: {actor.get('role')} {actor['_id']} {transition.action.value}d "
                    f"({transition.from_status} -> {transition.to_status})")
        return updated

    async def _allocate(self, uow: UnitOfWork, request: Dict[str, Any], item_ids: List[str],
                        actor: Dict[str, Any]) -> Dict[str, Any]:
        requester_id = request["requester_id"]
        department_id = request["requester_department_id"]

        if request.get("requester_role") == Role.DEPARTMENT_HEAD.value:
            item = await item_service.create_allocated_item(
                uow, request["item_name"], request.get("item_description"), requester_id, department_id, actor
            )
            return {"allocated_item_id": item["_id"], "allocated_item_ids": [item["_id"]]}

        allocated = []
        for item_id in item_ids:
            item = await item_service.allocate_available(uow, item_id, requester_id, department_id, actor)
            allocated.append(item["_id"])
        return {"allocated_item_id": allocated[0], "allocated_item_ids": allocated}

    @staticmethod
    def _validate_item_ids(request: Dict[str, Any], item_ids: Optional[List[str]]) -> List[str]:
        if request.get("requester_role") == Role.DEPARTMENT_HEAD.value:
            return []

        item_ids = list(dict.fromkeys(item_ids or []))
        if len(item_ids) != request["quantity"]:
            raise WorkflowValidationError(
                f"Select exactly {request['quantity']} distinct available item(s) to allocate"
            )
        return item_ids

    async def _ensure_scope(self, request: Dict[str, Any], actor: Dict[str, Any]) -> None:
        role = actor.get("role")
        if role == Role.DEPARTMENT_HEAD.value:
            organization_service.ensure_department_head_of(actor, request["requester_department_id"])
        elif role == Role.COLLEGE_DEAN.value:
            await organization_service.ensure_dean_of(actor, request["requester_department_id"])

    async def _scope_department_ids(self, actor: Dict[str, Any]) -> Optional[List[str]]:
        """Departments whose requests the actor oversees; None means unrestricted or own-only."""
        role = actor.get("role")
        if role == Role.DEPARTMENT_HEAD.value:
            return [actor["department_id"]] if actor.get("department_id") else []
        if role == Role.COLLEGE_DEAN.value:
            if not actor.get("college_id"):
                return []
            return await organization_service.get_department_ids_for_college(actor["college_id"])
        return None

    async def _can_view(self, request: Dict[str, Any], actor: Dict[str, Any]) -> bool:
        if actor.get("role") in (Role.ADMIN.value, Role.STOREKEEPER.value):
            return True
        if request["requester_id"] == str(actor["_id"]):
            return True
        department_ids = await self._scope_department_ids(actor)
        return department_ids is not None and request["requester_department_id"] in department_ids

    async def _notify_requester(self, request: Dict[str, Any], rejected: bool, session=None) -> None:
        item_name = request["item_name"]
        if rejected:
            reason = f": {request['rejection_reason']}" if request.get("rejection_reason") else ""
            title = "Request rejected"
            message = f"Your request for {item_name} was rejected{reason}"
            kind = NotificationType.ERROR
        elif request["status"] == RequestStatus.APPROVED.value:
            title = "Request approved"
            message = f"Your request for {item_name} was approved and items have been allocated"
            kind = NotificationType.SUCCESS
        else:
            title = "Request progressed"
            message = f"Your request for {item_name} is now awaiting {STAGE_LABELS[request['status']]}"
            kind = NotificationType.INFO

        await notification_service.notify(
            request["requester_id"], title, message, kind, self.entity_type, request["_id"], session=session
        )

    async def _notify_next_stage(self, request: Dict[str, Any], session=None) -> None:
        status = request["status"]
        if self.machine.is_terminal(status):
            return

        stage_role = self.machine.stage_for(status).role
        query: Dict[str, Any] = {"role": stage_role, "is_active": True}
        if stage_role == Role.DEPARTMENT_HEAD.value:
            query["department_id"] = request["requester_department_id"]
        elif stage_role == Role.COLLEGE_DEAN.value:
            college_id = await organization_service.get_department_college_id(
                request["requester_department_id"], session=session
            )
            if not college_id:
                return
            query["college_id"] = college_id

        approvers = await self.user_repo.find_many(query, limit=1000, session=session)
        await notification_service.notify_many(
            [approver["_id"] for approver in approvers],
            "Request awaiting approval",
            f"A request for {request['quantity']} x {request['item_name']} is awaiting {STAGE_LABELS[status]}",
            NotificationType.APPROVAL,
            self.entity_type,
            request["_id"],
            session=session,
        )


# Create global instance
request_service = RequestService()
