"""
Decision payloads shared by every workflow.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel


class DecisionRequest(BaseModel):
    """
    Approve or reject the current stage.

    `item_ids` lists the stock a storekeeper allocates to a staff request.
    `expected_version` is the version the client read; a stale value is a conflict.
    """
    action: Literal["approve", "reject"]
    comment: Optional[str] = None
    item_ids: Optional[List[str]] = None
    expected_version: Optional[int] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "action": "reject",
                "comment": "budget"
            }
        }
    }


class CommentRequest(BaseModel):
    comment: Optional[str] = None
    expected_version: Optional[int] = None
