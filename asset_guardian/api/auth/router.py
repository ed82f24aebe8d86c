"""
Auth API routes for authentication.
"""
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from asset_guardian.core.permissions import get_role_permissions
from asset_guardian.dependencies.permissions import get_current_active_user
from asset_guardian.domains.auth.service import auth_service
from asset_guardian.schemas.auth import Token
from asset_guardian.schemas.user import UserWithPermissions

router = APIRouter()


@router.post("/login", response_model=Token)
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    """
    Login with username (email) and password to get access token.

    Args:
        form_data: OAuth2 form with username and password

    Returns:
        Access token and token type
    """
    # The username field in OAuth2PasswordRequestForm contains the email
    return await auth_service.login(form_data.username, form_data.password)


@router.get("/me", response_model=UserWithPermissions)
async def read_users_me(current_user: dict = Depends(get_current_active_user)):
    """
    Get current user profile with the permissions its role grants.
    """
    return {**current_user, "permissions": get_role_permissions(current_user.get("role"))}
