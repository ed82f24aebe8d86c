"""
User service for business logic.
"""
import logging
from typing import Any, Dict, List, Optional

from asset_guardian.core.config import settings
from asset_guardian.core.exceptions import ConflictError, WorkflowValidationError
from asset_guardian.core.permissions import Role
from asset_guardian.core.security import get_password_hash
from asset_guardian.domains.organization.service import organization_service
from asset_guardian.domains.users.repository import UserRepository
from asset_guardian.models.user import UserModel

logger = logging.getLogger(__name__)


class UserService:
    """
    Service for user-related business logic.
    """

    def __init__(self, user_repo: Optional[UserRepository] = None):
        """
        Initialize with user repository.

        Args:
            user_repo: Optional user repository instance
        """
        self.user_repo = user_repo or UserRepository()

    async def get_users(
            self,
            skip: int = 0,
            limit: int = 100,
            email: Optional[str] = None,
            role: Optional[str] = None,
            department_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Get users with optional filtering.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            email: Filter by email pattern
            role: Filter by role
            department_id: Filter by department

        Returns:
            List of user documents
        """
        query: Dict[str, Any] = {}

        if email:
            query["email"] = {"$regex": email, "$options": "i"}

        if role:
            query["role"] = role

        if department_id:
            query["department_id"] = department_id

        return await self.user_repo.find_many(query, skip, limit, sort_by="full_name")

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        return await self.user_repo.get_by_id(user_id)

    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return await self.user_repo.find_by_email(email)

    async def get_department_staff(self, department_id: str) -> List[Dict[str, Any]]:
        """Active users of a department, used to pick transfer receivers."""
        await organization_service.get_department(department_id)
        return await self.user_repo.find_by_department(department_id)

    async def get_active_user_ids_by_role(self, role: Role, session=None) -> List[str]:
        users = await self.user_repo.find_active_by_role(role.value, session=session)
        return [user["_id"] for user in users]

    async def create_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a new user.

        Args:
            user_data: User data with a plain-text password

        Returns:
            Created user document

        Raises:
            ConflictError: If email already exists
            NotFoundError: If the department or college does not exist
            WorkflowValidationError: If the role lacks its required affiliation
        """
        if await self.user_repo.email_exists(user_data.get("email", "")):
            raise ConflictError("Email already registered")

        user_data = dict(user_data)
        user_data.update(await self._resolve_affiliation(
            user_data.get("role", Role.STAFF.value),
            user_data.get("college_id"),
            user_data.get("department_id"),
        ))
        user_data["password"] = get_password_hash(user_data["password"])

        user = await self.user_repo.create(UserModel(**user_data).to_document())
        logger.info(f"Created user {user['_id']} ({user['email']}) as {user['role']}")
        return user

    async def update_user(self, user_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update profile fields of a user.

        Args:
            user_id: User ID
            user_data: Updated user data

        Returns:
            Updated user document

        Raises:
            NotFoundError: If the user does not exist
            ConflictError: If the new email is taken
        """
        existing_user = await self.user_repo.get_by_id(user_id)

        if "email" in user_data and user_data["email"] != existing_user.get("email"):
            if await self.user_repo.email_exists(user_data["email"]):
                raise ConflictError("Email already registered")

        user_data = dict(user_data)
        if user_data.get("password"):
            user_data["password"] = get_password_hash(user_data["password"])
        else:
            user_data.pop("password", None)

        return await self.user_repo.update(user_id, user_data)

    async def assign_role(
            self,
            user_id: str,
            role: str,
            college_id: Optional[str] = None,
            department_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Assign role and affiliation to a user.

        Args:
            user_id: User ID
            role: New role
            college_id: College for deans (derived from the department otherwise)
            department_id: Department for department heads and staff

        Returns:
            Updated user document
        """
        await self.user_repo.get_by_id(user_id)

        changes = {"role": role}
        changes.update(await self._resolve_affiliation(role, college_id, department_id))

        user = await self.user_repo.update(user_id, changes)
        logger.info(f"Assigned role {role} to user {user_id}")
        return user

    async def ensure_default_admin(self) -> Optional[Dict[str, Any]]:
        """
        Create the configured admin account if no admin exists yet.

        Returns:
            Created admin document, or None if an admin already exists
        """
        if await self.user_repo.exists({"role": Role.ADMIN.value}):
            return None

        logger.info(f"No admin found, creating default admin {settings.ADMIN_EMAIL}")
        return await self.create_user({
            "email": settings.ADMIN_EMAIL,
            "full_name": "System Administrator",
            "password": settings.ADMIN_PASSWORD,
            "role": Role.ADMIN.value,
        })

    async def _resolve_affiliation(
            self,
            role: str,
            college_id: Optional[str],
            department_id: Optional[str]
    ) -> Dict[str, Optional[str]]:
        if department_id:
            department = await organization_service.get_department(department_id)
            if college_id and college_id != department["college_id"]:
                raise WorkflowValidationError("Department does not belong to the given college")
            college_id = department["college_id"]
        elif college_id:
            await organization_service.get_college(college_id)

        if role == Role.DEPARTMENT_HEAD.value and not department_id:
            raise WorkflowValidationError("A department head must be assigned a department")
        if role == Role.COLLEGE_DEAN.value and not college_id:
            raise WorkflowValidationError("A college dean must be assigned a college")

        return {"college_id": college_id, "department_id": department_id}


# Create global instance
user_service = UserService()
