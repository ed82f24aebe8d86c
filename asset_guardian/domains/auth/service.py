"""
Password login for bearer tokens.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from asset_guardian.core.config import settings
from asset_guardian.core.security import create_access_token, verify_password
from asset_guardian.domains.users.service import user_service

logger = logging.getLogger(__name__)


class AuthService:

    async def authenticate_user(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Check an email/password pair.

        Deactivated accounts never authenticate, even with the right password.

        Returns:
            User document, or None if the credentials are rejected
        """
        user = await user_service.get_user_by_email(email)
        if user is None or not verify_password(password, user.get("password", "")):
            return None

        if not user.get("is_active", False):
            logger.warning(f"Login refused for deactivated user {user['_id']}")
            return None

        return user

    async def login(self, email: str, password: str) -> Dict[str, str]:
        """
        Issue an access token whose subject is the user ID.

        Raises:
            HTTPException: 401 if the credentials are rejected
        """
        user = await self.authenticate_user(email, password)
        if user is None:
            logger.warning(f"Failed login attempt for {email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        logger.info(f"User {user['_id']} ({user['role']}) logged in")
        token = create_access_token(
            subject=str(user["_id"]),
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )
        return {"access_token": token, "token_type": "bearer"}


auth_service = AuthService()
