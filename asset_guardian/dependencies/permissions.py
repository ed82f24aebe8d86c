# asset_guardian/dependencies/permissions.py
from typing import Any, Callable, Dict

from fastapi import Depends, HTTPException, status
from jose import JWTError

from asset_guardian.core.permissions import Role, check_permissions, get_role_permissions
from asset_guardian.core.security import decode_access_token, oauth2_scheme
from asset_guardian.domains.users.service import user_service


async def get_current_user(token: str = Depends(oauth2_scheme)) -> Dict[str, Any]:
    """
    Get the current user from JWT token
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        user_id = decode_access_token(token)
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = await user_service.user_repo.find_by_id(user_id)
    if user is None:
        raise credentials_exception

    return user


async def get_current_active_user(
        current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """
    Get the current active user
    """
    if not current_user.get("is_active", False):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return current_user


def has_permission(required_permission: str) -> Callable:
    """
    Dependency to check if the current user's role grants the required permission
    """

    async def permission_checker(
            current_user: Dict[str, Any] = Depends(get_current_active_user)
    ) -> Dict[str, Any]:
        if not check_permissions(get_role_permissions(current_user.get("role")), required_permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )

        return current_user

    return permission_checker


def require_roles(*roles: Role) -> Callable:
    """
    Dependency restricting a route to users holding one of the given roles
    """
    allowed = {role.value for role in roles}

    async def role_checker(
            current_user: Dict[str, Any] = Depends(get_current_active_user)
    ) -> Dict[str, Any]:
        if current_user.get("role") not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This action requires one of the roles: {', '.join(sorted(allowed))}",
            )

        return current_user

    return role_checker
