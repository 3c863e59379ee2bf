"""Paper workflow domain: status machine, authorization gate, errors."""

from .paper_status import (
    PaperStatus,
    PaperAction,
    Transition,
    TRANSITIONS,
    TERMINAL_STATES,
    PRE_MODERATION_STATES,
    get_transition,
    can_apply,
    target_status,
    allowed_actions,
    allowed_actions_for_role,
    is_terminal,
)
from .errors import (
    DenyReason,
    PaperWorkflowError,
    ValidationError,
    NotFoundError,
    AuthorizationError,
    InvalidTransitionError,
    StorageError,
)
from .authorization import (
    Principal,
    AuthorizationDecision,
    authorize,
    ensure_authorized,
    ensure_can_create,
    can_view,
)

__all__ = [
    "PaperStatus",
    "PaperAction",
    "Transition",
    "TRANSITIONS",
    "TERMINAL_STATES",
    "PRE_MODERATION_STATES",
    "get_transition",
    "can_apply",
    "target_status",
    "allowed_actions",
    "allowed_actions_for_role",
    "is_terminal",
    "DenyReason",
    "PaperWorkflowError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "InvalidTransitionError",
    "StorageError",
    "Principal",
    "AuthorizationDecision",
    "authorize",
    "ensure_authorized",
    "ensure_can_create",
    "can_view",
]
