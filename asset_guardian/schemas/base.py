"""
Shared response schema pieces.
"""
from datetime import datetime

from pydantic import BaseModel, Field


class DocumentResponse(BaseModel):
    """Fields every stored document is returned with."""
    id: str = Field(..., alias="_id")
    created_at: datetime
    updated_at: datetime
    version: int = 1

    model_config = {
        "populate_by_name": True,
    }
