"""
Shared base for database models.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from asset_guardian.utils.datetime_handler import DateTimeHandler


class DocumentModel(BaseModel):
    """Base database model: `_id`, timestamps and the optimistic-concurrency version."""
    id: Optional[str] = Field(default=None, alias="_id")
    created_at: datetime = Field(default_factory=DateTimeHandler.get_current_datetime)
    updated_at: datetime = Field(default_factory=DateTimeHandler.get_current_datetime)
    version: int = 1

    model_config = {
        "populate_by_name": True,
        "use_enum_values": True,
    }

    def to_document(self) -> Dict[str, Any]:
        """Dump to a dict ready for insertion (MongoDB assigns `_id`)."""
        return self.model_dump(exclude={"id"})
