from typing import Optional

from pydantic import BaseModel, Field

from asset_guardian.schemas.base import DocumentResponse


class CollegeCreate(BaseModel):
    name: str = Field(..., min_length=1)


class CollegeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)


class CollegeResponse(DocumentResponse):
    name: str


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1)
    college_id: str


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    college_id: Optional[str] = None


class DepartmentResponse(DocumentResponse):
    name: str
    college_id: str
