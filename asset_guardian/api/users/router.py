"""
User API routes for user management.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from asset_guardian.api.pagination import Pagination
from asset_guardian.core.permissions import Role
from asset_guardian.dependencies.permissions import (
    get_current_active_user,
    has_permission,
    require_roles,
)
from asset_guardian.domains.users.service import user_service
from asset_guardian.schemas.user import RoleAssignment, UserCreate, UserResponse, UserUpdate

router = APIRouter()


@router.get("/", response_model=List[UserResponse])
async def read_users(
        page: Pagination = Depends(),
        email: Optional[str] = None,
        role: Optional[Role] = None,
        department_id: Optional[str] = None,
        current_user: dict = Depends(require_roles(Role.ADMIN))
):
    """
    Get all users with optional filtering.

    Args:
        page: Pagination parameters
        email: Filter by email pattern
        role: Filter by role
        department_id: Filter by department
        current_user: Current user from token

    Returns:
        List of users
    """
    return await user_service.get_users(
        page.skip, page.limit, email, role.value if role else None, department_id
    )


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: dict = Depends(get_current_active_user)):
    """
    Get current user profile.
    """
    return current_user


@router.get("/department/{department_id}", response_model=List[UserResponse])
async def read_department_staff(
        department_id: str,
        current_user: dict = Depends(has_permission("users:read"))
):
    """
    Get active users of a department, for choosing a transfer receiver.
    """
    return await user_service.get_department_staff(department_id)


@router.get("/{user_id}", response_model=UserResponse)
async def read_user(
        user_id: str,
        current_user: dict = Depends(get_current_active_user)
):
    """
    Get user by ID. Users may read their own profile; admins any profile.

    Raises:
        HTTPException: If the caller may not read this profile
    """
    if current_user.get("role") != Role.ADMIN.value and str(current_user["_id"]) != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    return await user_service.get_user(user_id)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
        user_in: UserCreate,
        current_user: dict = Depends(require_roles(Role.ADMIN))
):
    """
    Create new user.

    Args:
        user_in: User creation data
        current_user: Current user from token

    Returns:
        Created user
    """
    return await user_service.create_user(user_in.model_dump(mode="json"))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
        user_id: str,
        user_in: UserUpdate,
        current_user: dict = Depends(require_roles(Role.ADMIN))
):
    """
    Update a user's profile fields or activate / deactivate the account.
    """
    return await user_service.update_user(user_id, user_in.model_dump(exclude_unset=True))


@router.patch("/{user_id}/role", response_model=UserResponse)
async def assign_user_role(
        user_id: str,
        assignment: RoleAssignment,
        current_user: dict = Depends(require_roles(Role.ADMIN))
):
    """
    Assign role, college and department to a user.
    """
    return await user_service.assign_role(
        user_id, assignment.role.value, assignment.college_id, assignment.department_id
    )
