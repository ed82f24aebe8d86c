"""
Roles and permission system with simplified resource:action format.
"""
from enum import Enum
from typing import Dict, Iterable, List


class Role(str, Enum):
    """User roles"""
    ADMIN = "admin"
    COLLEGE_DEAN = "college_dean"
    DEPARTMENT_HEAD = "department_head"
    STOREKEEPER = "storekeeper"
    STAFF = "staff"


class PermissionArea(str, Enum):
    """Resource areas for permissions"""
    USERS = "users"
    ORGANIZATION = "organization"
    ITEMS = "items"
    REQUESTS = "requests"
    TRANSFERS = "transfers"
    RETURNS = "returns"
    MAINTENANCE = "maintenance"
    NOTIFICATIONS = "notifications"
    EVENTS = "events"


class PermissionAction(str, Enum):
    """Actions for permissions"""
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    APPROVE = "approve"


def get_permission_string(area: PermissionArea, action: PermissionAction) -> str:
    """
    Generate a permission string in the format 'area:action'

    Args:
        area: Permission area (resource)
        action: Permission action

    Returns:
        Permission string
    """
    return f"{area.value}:{action.value}"


def _grant(area: PermissionArea, *actions: PermissionAction) -> List[str]:
    return [get_permission_string(area, action) for action in actions]


R, W, D, A = PermissionAction.READ, PermissionAction.WRITE, PermissionAction.DELETE, PermissionAction.APPROVE

# Baseline every signed-in user gets: own profile, own notifications, submit workflows
_SELF_SERVICE = (
    _grant(PermissionArea.USERS, R)
    + _grant(PermissionArea.ORGANIZATION, R)
    + _grant(PermissionArea.NOTIFICATIONS, R, W)
    + _grant(PermissionArea.TRANSFERS, R, W)
    + _grant(PermissionArea.RETURNS, R, W)
    + _grant(PermissionArea.MAINTENANCE, R, W)
)

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    Role.ADMIN.value: [
        get_permission_string(area, action)
        for area in PermissionArea
        for action in PermissionAction
    ],
    Role.COLLEGE_DEAN.value: _SELF_SERVICE + [
        *_grant(PermissionArea.ITEMS, R),
        *_grant(PermissionArea.REQUESTS, R, A),
        *_grant(PermissionArea.TRANSFERS, A),
        *_grant(PermissionArea.EVENTS, R),
    ],
    Role.DEPARTMENT_HEAD.value: _SELF_SERVICE + [
        *_grant(PermissionArea.ITEMS, R),
        *_grant(PermissionArea.REQUESTS, R, W, A),
        *_grant(PermissionArea.TRANSFERS, A),
        *_grant(PermissionArea.EVENTS, R),
    ],
    Role.STOREKEEPER.value: _SELF_SERVICE + [
        *_grant(PermissionArea.ITEMS, R, W),
        *_grant(PermissionArea.REQUESTS, R, A),
        *_grant(PermissionArea.TRANSFERS, A),
        *_grant(PermissionArea.RETURNS, A),
        *_grant(PermissionArea.MAINTENANCE, A),
        *_grant(PermissionArea.EVENTS, R),
    ],
    Role.STAFF.value: _SELF_SERVICE + [
        *_grant(PermissionArea.REQUESTS, R, W),
        *_grant(PermissionArea.EVENTS, R),
    ],
}


def get_role_permissions(role: str) -> List[str]:
    """
    Get permissions for a role.

    Args:
        role: Role name

    Returns:
        List of permission strings (empty for unknown roles)
    """
    return list(ROLE_PERMISSIONS.get(role, []))


def check_permissions(user_permissions: Iterable[str], required_permission: str) -> bool:
    """
    Check if a permission list grants the required permission.

    Args:
        user_permissions: Permissions held by the user
        required_permission: Permission in 'area:action' format

    Returns:
        True if granted
    """
    return required_permission in set(user_permissions)
