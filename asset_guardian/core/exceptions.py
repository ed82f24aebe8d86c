"""
Workflow error taxonomy.

Every error is an HTTPException so services can raise it directly and
FastAPI renders it; `error` carries the machine-readable kind.
"""
from typing import Optional

from fastapi import HTTPException, status


class WorkflowError(HTTPException):
    """Base class for recoverable workflow errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "workflow_error"

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code, detail=detail)


class InvalidStageError(WorkflowError):
    """Actor's role does not correspond to the entity's current pending stage."""

    status_code = status.HTTP_409_CONFLICT
    error = "invalid_stage"


class AlreadyTerminalError(WorkflowError):
    """Entity is already in a terminal state."""

    status_code = status.HTTP_409_CONFLICT
    error = "already_terminal"


class ConflictError(WorkflowError):
    """Optimistic check failed or a uniqueness rule was violated."""

    status_code = status.HTTP_409_CONFLICT
    error = "conflict"


class NotFoundError(WorkflowError):
    """Referenced entity, item or profile does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"


class WorkflowValidationError(WorkflowError):
    """Decision payload or domain input is malformed."""

    status_code = 422
    error = "validation_error"


class ForbiddenError(WorkflowError):
    """Actor is outside the scope of the stage it tries to act on."""

    status_code = status.HTTP_403_FORBIDDEN
    error = "forbidden"
