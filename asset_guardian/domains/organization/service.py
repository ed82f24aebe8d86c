"""
Organization service: colleges, departments and actor scope checks.
"""
import logging
from typing import Any, Dict, List, Optional

from asset_guardian.core.exceptions import ConflictError, ForbiddenError
from asset_guardian.domains.items.repository import ItemRepository
from asset_guardian.domains.organization.repository import CollegeRepository, DepartmentRepository
from asset_guardian.domains.users.repository import UserRepository
from asset_guardian.models.organization import CollegeModel, DepartmentModel

logger = logging.getLogger(__name__)


class OrganizationService:
    """
    Service for the college / department hierarchy.
    """

    def __init__(
            self,
            college_repo: Optional[CollegeRepository] = None,
            department_repo: Optional[DepartmentRepository] = None,
            user_repo: Optional[UserRepository] = None,
            item_repo: Optional[ItemRepository] = None
    ):
        self.college_repo = college_repo or CollegeRepository()
        self.department_repo = department_repo or DepartmentRepository()
        self.user_repo = user_repo or UserRepository()
        self.item_repo = item_repo or ItemRepository()

    # Colleges

    async def get_colleges(self, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.college_repo.find_many({}, skip, limit, sort_by="name")

    async def get_college(self, college_id: str) -> Dict[str, Any]:
        return await self.college_repo.get_by_id(college_id)

    async def create_college(self, college_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a college.

        Args:
            college_data: College data

        Returns:
            Created college document

        Raises:
            ConflictError: If the name is taken
        """
        if await self.college_repo.find_by_name(college_data["name"]):
            raise ConflictError(f"College '{college_data['name']}' already exists")

        college = await self.college_repo.create(CollegeModel(**college_data).to_document())
        logger.info(f"Created college {college['_id']} ({college['name']})")
        return college

    async def update_college(self, college_id: str, college_data: Dict[str, Any]) -> Dict[str, Any]:
        existing = await self.college_repo.get_by_id(college_id)

        name = college_data.get("name")
        if name and name != existing["name"] and await self.college_repo.find_by_name(name):
            raise ConflictError(f"College '{name}' already exists")

        return await self.college_repo.update(college_id, college_data)

    async def delete_college(self, college_id: str) -> bool:
        """
        Delete a college that has no departments.

        Raises:
            NotFoundError: If the college does not exist
            ConflictError: If departments still belong to it
        """
        await self.college_repo.get_by_id(college_id)

        if await self.department_repo.exists({"college_id": college_id}):
            raise ConflictError("Cannot delete a college that still has departments")

        return await self.college_repo.delete(college_id)

    # Departments

    async def get_departments(self, college_id: Optional[str] = None,
                              skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        if college_id:
            return await self.department_repo.find_by_college(college_id, skip, limit)
        return await self.department_repo.find_many({}, skip, limit, sort_by="name")

    async def get_department(self, department_id: str) -> Dict[str, Any]:
        return await self.department_repo.get_by_id(department_id)

    async def create_department(self, department_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a department inside an existing college.

        Args:
            department_data: Department data

        Returns:
            Created department document

        Raises:
            NotFoundError: If the college does not exist
            ConflictError: If the college already has a department with this name
        """
        await self.college_repo.get_by_id(department_data["college_id"])

        if await self.department_repo.find_by_name(department_data["college_id"], department_data["name"]):
            raise ConflictError(f"Department '{department_data['name']}' already exists in this college")

        department = await self.department_repo.create(DepartmentModel(**department_data).to_document())
        logger.info(f"Created department {department['_id']} ({department['name']})")
        return department

    async def update_department(self, department_id: str, department_data: Dict[str, Any]) -> Dict[str, Any]:
        existing = await self.department_repo.get_by_id(department_id)

        college_id = department_data.get("college_id") or existing["college_id"]
        if department_data.get("college_id"):
            await self.college_repo.get_by_id(college_id)

        name = department_data.get("name") or existing["name"]
        if (name, college_id) != (existing["name"], existing["college_id"]):
            if await self.department_repo.find_by_name(college_id, name):
                raise ConflictError(f"Department '{name}' already exists in this college")

        return await self.department_repo.update(department_id, department_data)

    async def delete_department(self, department_id: str) -> bool:
        """
        Delete a department with no members and no owned items.

        Raises:
            NotFoundError: If the department does not exist
            ConflictError: If users or items still reference it
        """
        await self.department_repo.get_by_id(department_id)

        if await self.user_repo.exists({"department_id": department_id}):
            raise ConflictError("Cannot delete a department that still has users")
        if await self.item_repo.exists({"owner_department_id": department_id}):
            raise ConflictError("Cannot delete a department that still owns items")

        return await self.department_repo.delete(department_id)

    # Scope

    async def get_department_college_id(self, department_id: Optional[str], session=None) -> Optional[str]:
        if not department_id:
            return None
        department = await self.department_repo.find_by_id(department_id, session=session)
        return department.get("college_id") if department else None

    async def get_department_ids_for_college(self, college_id: str) -> List[str]:
        departments = await self.department_repo.find_by_college(college_id, limit=1000)
        return [department["_id"] for department in departments]

    def ensure_department_head_of(self, actor: Dict[str, Any], department_id: Optional[str]) -> None:
        """
        Raises:
            ForbiddenError: If the actor does not head the department
        """
        if not department_id or actor.get("department_id") != department_id:
            raise ForbiddenError("You can only act on behalf of the department you head")

    async def ensure_dean_of(self, actor: Dict[str, Any], department_id: Optional[str], session=None) -> None:
        """
        Raises:
            ForbiddenError: If the department is not in the actor's college
        """
        college_id = await self.get_department_college_id(department_id, session=session)
        if not college_id or actor.get("college_id") != college_id:
            raise ForbiddenError("You can only act on behalf of departments in your college")


# Create global instance
organization_service = OrganizationService()
