import pytest

from asset_guardian.core.exceptions import (
    AlreadyTerminalError,
    InvalidStageError,
    WorkflowValidationError,
)
from asset_guardian.workflow.state_machine import (
    RECEIVER,
    REQUEST_MACHINE,
    TRANSFER_MACHINE,
    Action,
    initial_request_status,
    initial_transfer_status,
)

REQUEST_ORDER = ["pending_dept_head", "pending_dean", "pending_storekeeper", "approved"]


@pytest.mark.parametrize("status,role,expected,field", [
    ("pending_dept_head", "department_head", "pending_dean", "dept_head_approver_id"),
    ("pending_dean", "college_dean", "pending_storekeeper", "dean_approver_id"),
    ("pending_storekeeper", "storekeeper", "approved", "storekeeper_allocator_id"),
])
def test_request_approval_moves_one_stage_forward(status, role, expected, field):
    transition = REQUEST_MACHINE.resolve(status, role, "approve")

    assert transition.to_status == expected
    assert transition.approver_field == field
    assert REQUEST_ORDER.index(expected) == REQUEST_ORDER.index(status) + 1


@pytest.mark.parametrize("status", sorted(REQUEST_MACHINE.pending_statuses))
def test_request_rejection_reachable_from_every_pending_stage(status):
    role = REQUEST_MACHINE.stage_for(status).role

    transition = REQUEST_MACHINE.resolve(status, role, Action.REJECT)

    assert transition.to_status == "rejected"
    assert transition.is_rejection
    assert transition.approver_field is None


@pytest.mark.parametrize("status", ["approved", "rejected"])
def test_terminal_requests_cannot_be_acted_on(status):
    with pytest.raises(AlreadyTerminalError):
        REQUEST_MACHINE.resolve(status, "storekeeper", "approve")


def test_wrong_role_for_stage_is_invalid_stage():
    with pytest.raises(InvalidStageError):
        REQUEST_MACHINE.resolve("pending_dept_head", "college_dean", "approve")

    with pytest.raises(InvalidStageError):
        REQUEST_MACHINE.resolve("pending_storekeeper", "admin", "approve")


def test_unknown_action_is_rejected():
    with pytest.raises(WorkflowValidationError):
        REQUEST_MACHINE.resolve("pending_dean", "college_dean", "escalate")


def test_unknown_status_is_rejected():
    with pytest.raises(WorkflowValidationError):
        REQUEST_MACHINE.resolve("pending_registrar", "college_dean", "approve")


def test_department_head_requests_skip_their_own_stage():
    assert initial_request_status("department_head") == "pending_dean"
    assert initial_request_status("staff") == "pending_dept_head"


def test_transfer_entry_depends_on_department_boundary():
    assert initial_transfer_status("d1", "d1") == "pending_storekeeper"
    assert initial_transfer_status("d1", "d2") == "pending_dept_head_approval"
    assert initial_transfer_status(None, "d2") == "pending_dept_head_approval"
    assert initial_transfer_status(None, None) == "pending_storekeeper"


def test_transfer_chain_ends_with_receiver_acceptance():
    path = ["pending_dept_head_approval"]
    while not TRANSFER_MACHINE.is_terminal(path[-1]):
        stage = TRANSFER_MACHINE.stage_for(path[-1])
        path.append(TRANSFER_MACHINE.resolve(path[-1], stage.role, "approve").to_status)

    assert path == [
        "pending_dept_head_approval",
        "pending_dean_approval",
        "pending_storekeeper",
        "pending_receiver_acceptance",
        "completed",
    ]
    assert TRANSFER_MACHINE.stage_for("pending_receiver_acceptance").role == RECEIVER


def test_queue_statuses_per_role():
    assert TRANSFER_MACHINE.statuses_for_role("storekeeper") == {"pending_storekeeper"}
    assert REQUEST_MACHINE.statuses_for_role("staff") == set()
