"""
Transition tables for every workflow entity.

Each machine maps `(current status, acting role, action)` to the next status
and names the approver field stamped on approval. The tables hold no I/O;
services load the entity, resolve the transition here and persist it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional

from asset_guardian.core.exceptions import (
    AlreadyTerminalError,
    InvalidStageError,
    WorkflowValidationError,
)
from asset_guardian.core.permissions import Role
from asset_guardian.models.item_request import RequestStatus
from asset_guardian.models.maintenance import MaintenanceStatus
from asset_guardian.models.return_request import ReturnStatus
from asset_guardian.models.transfer import TransferStatus

# Pseudo-role for the receiving user of a transfer; matched by identity, not by profile role
RECEIVER = "receiver"


class Action(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class Stage:
    status: str
    role: str
    next_status: str
    approver_field: Optional[str] = None


@dataclass(frozen=True)
class Transition:
    from_status: str
    to_status: str
    action: Action
    role: str
    approver_field: Optional[str] = None

    @property
    def is_rejection(self) -> bool:
        return self.action == Action.REJECT


class StateMachine:
    """
    Ordered approval stages plus a rejection state reachable from every pending stage.
    """

    def __init__(self, entity_type: str, stages: Iterable[Stage], rejected_status: str, terminal_statuses: Iterable[str]):
        self.entity_type = entity_type
        self.stages: Dict[str, Stage] = {stage.status: stage for stage in stages}
        self.rejected_status = rejected_status
        self.terminal_statuses: FrozenSet[str] = frozenset(terminal_statuses)

    @property
    def pending_statuses(self) -> FrozenSet[str]:
        return frozenset(self.stages)

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal_statuses

    def stage_for(self, status: str) -> Stage:
        stage = self.stages.get(status)
        if stage is None:
            raise WorkflowValidationError(f"Unknown {self.entity_type} status '{status}'")
        return stage

    def statuses_for_role(self, role: str) -> FrozenSet[str]:
        """Pending statuses the given role acts on."""
        return frozenset(status for status, stage in self.stages.items() if stage.role == role)

    def resolve(self, current_status: str, actor_role: str, action) -> Transition:
        """
        Decide the next status for an actor's decision.

        Args:
            current_status: Status the entity was read in
            actor_role: Role the actor acts in
            action: "approve" or "reject"

        Returns:
            The transition to persist

        Raises:
            AlreadyTerminalError: Entity is in a terminal state
            InvalidStageError: Role does not act on the current stage
            WorkflowValidationError: Unknown status or action
        """
        if self.is_terminal(current_status):
            raise AlreadyTerminalError(f"{self.entity_type.capitalize()} is already {current_status}")

        try:
            action = Action(action)
        except ValueError:
            raise WorkflowValidationError(f"Invalid action '{action}'. Must be 'approve' or 'reject'")

        stage = self.stage_for(current_status)
        if actor_role != stage.role:
            raise InvalidStageError(
                f"A {actor_role} cannot act on a {self.entity_type} in {current_status} status; "
                f"waiting for {stage.role}"
            )

        if action == Action.APPROVE:
            return Transition(current_status, stage.next_status, action, stage.role, stage.approver_field)
        return Transition(current_status, self.rejected_status, action, stage.role)


REQUEST_MACHINE = StateMachine(
    "request",
    [
        Stage(RequestStatus.PENDING_DEPT_HEAD.value, Role.DEPARTMENT_HEAD.value,
              RequestStatus.PENDING_DEAN.value, "dept_head_approver_id"),
        Stage(RequestStatus.PENDING_DEAN.value, Role.COLLEGE_DEAN.value,
              RequestStatus.PENDING_STOREKEEPER.value, "dean_approver_id"),
        Stage(RequestStatus.PENDING_STOREKEEPER.value, Role.STOREKEEPER.value,
              RequestStatus.APPROVED.value, "storekeeper_allocator_id"),
    ],
    rejected_status=RequestStatus.REJECTED.value,
    terminal_statuses=[RequestStatus.APPROVED.value, RequestStatus.REJECTED.value],
)

TRANSFER_MACHINE = StateMachine(
    "transfer",
    [
        Stage(TransferStatus.PENDING_DEPT_HEAD_APPROVAL.value, Role.DEPARTMENT_HEAD.value,
              TransferStatus.PENDING_DEAN_APPROVAL.value, "dept_head_approver_id"),
        Stage(TransferStatus.PENDING_DEAN_APPROVAL.value, Role.COLLEGE_DEAN.value,
              TransferStatus.PENDING_STOREKEEPER.value, "dean_approver_id"),
        Stage(TransferStatus.PENDING_STOREKEEPER.value, Role.STOREKEEPER.value,
              TransferStatus.PENDING_RECEIVER_ACCEPTANCE.value, "storekeeper_approver_id"),
        Stage(TransferStatus.PENDING_RECEIVER_ACCEPTANCE.value, RECEIVER,
              TransferStatus.COMPLETED.value),
    ],
    rejected_status=TransferStatus.REJECTED.value,
    terminal_statuses=[TransferStatus.COMPLETED.value, TransferStatus.REJECTED.value],
)

RETURN_MACHINE = StateMachine(
    "return request",
    [
        Stage(ReturnStatus.PENDING.value, Role.STOREKEEPER.value,
              ReturnStatus.APPROVED.value, "processed_by_id"),
    ],
    rejected_status=ReturnStatus.REJECTED.value,
    terminal_statuses=[ReturnStatus.APPROVED.value, ReturnStatus.REJECTED.value],
)

# "reject" on a maintenance record means the item could not be repaired
MAINTENANCE_MACHINE = StateMachine(
    "maintenance request",
    [
        Stage(MaintenanceStatus.PENDING.value, Role.STOREKEEPER.value,
              MaintenanceStatus.COMPLETED.value, "processed_by_id"),
    ],
    rejected_status=MaintenanceStatus.UNREPAIRABLE.value,
    terminal_statuses=[MaintenanceStatus.COMPLETED.value, MaintenanceStatus.UNREPAIRABLE.value],
)


def initial_request_status(requester_role: str) -> str:
    """
    Department heads skip their own approval stage.

    Args:
        requester_role: Role of the user submitting the request

    Returns:
        Status the request is created in
    """
    if requester_role == Role.DEPARTMENT_HEAD.value:
        return RequestStatus.PENDING_DEAN.value
    return RequestStatus.PENDING_DEPT_HEAD.value


def initial_transfer_status(initiator_department_id: Optional[str], receiver_department_id: Optional[str]) -> str:
    """
    Transfers that cross a department boundary need department head and dean sign-off first.

    Args:
        initiator_department_id: Department of the current custodian
        receiver_department_id: Department of the receiver

    Returns:
        Status the transfer is created in
    """
    if initiator_department_id != receiver_department_id:
        return TransferStatus.PENDING_DEPT_HEAD_APPROVAL.value
    return TransferStatus.PENDING_STOREKEEPER.value
