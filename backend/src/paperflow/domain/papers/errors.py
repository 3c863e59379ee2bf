"""Domain errors raised by the paper workflow.

Every error carries a machine-readable ``kind`` so the request boundary can
map it to a status code and the client can tell the failure types apart.
"""

from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID


class DenyReason(str, Enum):
    """Why the authorization gate refused an action."""
    WRONG_ROLE = "wrong_role"
    NOT_OWNER = "not_owner"
    NOT_ASSIGNED = "not_assigned"
    INVALID_STATE = "invalid_state"


class PaperWorkflowError(Exception):
    """Base class for all caller-visible workflow failures."""
    kind = "workflow_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class ValidationError(PaperWorkflowError):
    """A required field is missing or malformed (no state change)."""
    kind = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class NotFoundError(PaperWorkflowError):
    """The referenced paper does not exist or is outside the caller's scope."""
    kind = "not_found"

    def __init__(self, paper_id: UUID):
        super().__init__(f"Paper {paper_id} not found")
        self.paper_id = paper_id


class AuthorizationError(PaperWorkflowError):
    """Wrong role, not the owner, or not assigned to the paper's course."""
    kind = "authorization_error"

    def __init__(self, message: str, reason: DenyReason):
        super().__init__(message)
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason.value
        return data


class InvalidTransitionError(PaperWorkflowError):
    """Caller may perform the action, but not from the paper's current status."""
    kind = "invalid_transition"

    def __init__(self, message: str, action: str, current_status: str):
        super().__init__(message)
        self.action = action
        self.current_status = current_status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["action"] = self.action
        data["current_status"] = self.current_status
        return data


class StorageError(PaperWorkflowError):
    """Attachment write, read or delete failed."""
    kind = "storage_error"
