"""
Organization API routes for colleges and departments.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from asset_guardian.api.pagination import Pagination
from asset_guardian.dependencies.permissions import has_permission
from asset_guardian.domains.organization.service import organization_service
from asset_guardian.schemas.organization import (
    CollegeCreate,
    CollegeResponse,
    CollegeUpdate,
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
)

router = APIRouter()


@router.get("/colleges", response_model=List[CollegeResponse])
async def read_colleges(
        page: Pagination = Depends(),
        current_user: dict = Depends(has_permission("organization:read"))
):
    return await organization_service.get_colleges(page.skip, page.limit)


@router.get("/colleges/{college_id}", response_model=CollegeResponse)
async def read_college(
        college_id: str,
        current_user: dict = Depends(has_permission("organization:read"))
):
    return await organization_service.get_college(college_id)


@router.post("/colleges", response_model=CollegeResponse, status_code=status.HTTP_201_CREATED)
async def create_college(
        college_in: CollegeCreate,
        current_user: dict = Depends(has_permission("organization:write"))
):
    return await organization_service.create_college(college_in.model_dump())


@router.put("/colleges/{college_id}", response_model=CollegeResponse)
async def update_college(
        college_id: str,
        college_in: CollegeUpdate,
        current_user: dict = Depends(has_permission("organization:write"))
):
    return await organization_service.update_college(college_id, college_in.model_dump(exclude_unset=True))


@router.delete("/colleges/{college_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_college(
        college_id: str,
        current_user: dict = Depends(has_permission("organization:delete"))
):
    """
    Delete a college. Fails with 409 while departments belong to it.
    """
    await organization_service.delete_college(college_id)


@router.get("/departments", response_model=List[DepartmentResponse])
async def read_departments(
        page: Pagination = Depends(),
        college_id: Optional[str] = None,
        current_user: dict = Depends(has_permission("organization:read"))
):
    return await organization_service.get_departments(college_id, page.skip, page.limit)


@router.get("/departments/{department_id}", response_model=DepartmentResponse)
async def read_department(
        department_id: str,
        current_user: dict = Depends(has_permission("organization:read"))
):
    return await organization_service.get_department(department_id)


@router.post("/departments", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
        department_in: DepartmentCreate,
        current_user: dict = Depends(has_permission("organization:write"))
):
    return await organization_service.create_department(department_in.model_dump())


@router.put("/departments/{department_id}", response_model=DepartmentResponse)
async def update_department(
        department_id: str,
        department_in: DepartmentUpdate,
        current_user: dict = Depends(has_permission("organization:write"))
):
    return await organization_service.update_department(
        department_id, department_in.model_dump(exclude_unset=True)
    )


@router.delete("/departments/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
        department_id: str,
        current_user: dict = Depends(has_permission("organization:delete"))
):
    """
    Delete a department. Fails with 409 while users or items reference it.
    """
    await organization_service.delete_department(department_id)
