# asset_guardian/models/organization.py
from asset_guardian.models.base import DocumentModel


class CollegeModel(DocumentModel):
    """Database model for colleges"""
    name: str


class DepartmentModel(DocumentModel):
    """Database model for departments"""
    name: str
    college_id: str
