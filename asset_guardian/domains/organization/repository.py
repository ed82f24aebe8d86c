"""
College and department repositories for database operations.
"""
from typing import Any, Dict, List, Optional

from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import COLLEGES, DEPARTMENTS


class CollegeRepository(BaseRepository):
    """
    Repository for college data access.
    """

    collection_name = COLLEGES
    entity_label = "College"

    async def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        return await self.find_one({"name": name})


class DepartmentRepository(BaseRepository):
    """
    Repository for department data access.
    """

    collection_name = DEPARTMENTS
    entity_label = "Department"

    async def find_by_college(self, college_id: str, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.find_many({"college_id": college_id}, skip, limit, sort_by="name")

    async def find_by_name(self, college_id: str, name: str) -> Optional[Dict[str, Any]]:
        return await self.find_one({"college_id": college_id, "name": name})
