"""Paper status state machine.

Every valid edge of the paper workflow is declared once in TRANSITIONS;
guards and allowed-action lists are derived from that table.

State Flow:
    draft -> pending_moderation -> pending_approval -> approved -> printed
                  ^         |
                  |         v
             revision_required

Terminal States: printed, rejected (reserved, no action produces it)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from ...auth.roles import UserRole


class PaperStatus(str, Enum):
    """Paper status enumeration.

    Values are stored as TEXT in the database and must match exactly.
    """
    DRAFT = "draft"
    PENDING_MODERATION = "pending_moderation"
    REVISION_REQUIRED = "revision_required"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    PRINTED = "printed"


class PaperAction(str, Enum):
    """Workflow actions that can be requested on an existing paper."""
    SUBMIT = "submit"
    REQUEST_REVISION = "request_revision"
    EXAMINER_APPROVE = "examiner_approve"
    HOD_APPROVE = "hod_approve"
    MARK_PRINTED = "mark_printed"
    REVISE_UPLOAD = "revise_upload"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Transition:
    """One row of the transition table.

    Attributes:
        action: Action that triggers the transition
        from_states: Statuses the paper must be in
        to_state: Resulting status (None when the paper is removed)
        role: The single role permitted to invoke the action
        owner_only: Caller must also own the paper (lecturer actions)
        course_scoped: Caller must be assigned the paper's course (examiner actions)
        requires_comment: A moderation comment is appended
        sets_examiner: examiner_id is set to the caller
        replaces_attachment: The current PDF is replaced
        verb: Phrase used in "cannot <verb> a paper in status ..." messages
    """
    action: PaperAction
    from_states: FrozenSet[PaperStatus]
    to_state: Optional[PaperStatus]
    role: UserRole
    verb: str
    owner_only: bool = False
    course_scoped: bool = False
    requires_comment: bool = False
    sets_examiner: bool = False
    replaces_attachment: bool = False


PRE_MODERATION_STATES = frozenset({PaperStatus.DRAFT, PaperStatus.REVISION_REQUIRED})

TRANSITIONS: Dict[PaperAction, Transition] = {
    PaperAction.SUBMIT: Transition(
        action=PaperAction.SUBMIT,
        from_states=PRE_MODERATION_STATES,
        to_state=PaperStatus.PENDING_MODERATION,
        role=UserRole.LECTURER,
        verb="submit",
        owner_only=True,
    ),
    PaperAction.REQUEST_REVISION: Transition(
        action=PaperAction.REQUEST_REVISION,
        from_states=frozenset({PaperStatus.PENDING_MODERATION}),
        to_state=PaperStatus.REVISION_REQUIRED,
        role=UserRole.EXAMINER,
        verb="request revision on",
        course_scoped=True,
        requires_comment=True,
        sets_examiner=True,
    ),
    PaperAction.EXAMINER_APPROVE: Transition(
        action=PaperAction.EXAMINER_APPROVE,
        from_states=frozenset({PaperStatus.PENDING_MODERATION}),
        to_state=PaperStatus.PENDING_APPROVAL,
        role=UserRole.EXAMINER,
        verb="moderate",
        course_scoped=True,
        sets_examiner=True,
    ),
    PaperAction.HOD_APPROVE: Transition(
        action=PaperAction.HOD_APPROVE,
        from_states=frozenset({PaperStatus.PENDING_APPROVAL}),
        to_state=PaperStatus.APPROVED,
        role=UserRole.HOD,
        verb="approve",
    ),
    PaperAction.MARK_PRINTED: Transition(
        action=PaperAction.MARK_PRINTED,
        from_states=frozenset({PaperStatus.APPROVED}),
        to_state=PaperStatus.PRINTED,
        role=UserRole.HOD,
        verb="mark as printed",
    ),
    PaperAction.REVISE_UPLOAD: Transition(
        action=PaperAction.REVISE_UPLOAD,
        from_states=PRE_MODERATION_STATES,
        to_state=PaperStatus.PENDING_MODERATION,
        role=UserRole.LECTURER,
        verb="upload a revision for",
        owner_only=True,
        replaces_attachment=True,
    ),
    # Metadata-only updates keep the paper in draft; an attachment
    # replacement sends it to moderation (see target_status).
    PaperAction.UPDATE: Transition(
        action=PaperAction.UPDATE,
        from_states=frozenset({PaperStatus.DRAFT}),
        to_state=PaperStatus.DRAFT,
        role=UserRole.LECTURER,
        verb="edit",
        owner_only=True,
    ),
    PaperAction.DELETE: Transition(
        action=PaperAction.DELETE,
        from_states=PRE_MODERATION_STATES,
        to_state=None,
        role=UserRole.LECTURER,
        verb="delete",
        owner_only=True,
    ),
}

TERMINAL_STATES = frozenset(
    status for status in PaperStatus
    if not any(status in t.from_states for t in TRANSITIONS.values())
)


def get_transition(action: PaperAction) -> Transition:
    """Look up the table row for an action.

    Raises:
        KeyError: If the action has no row (never for PaperAction members)
    """
    return TRANSITIONS[PaperAction(action)]


def can_apply(action: PaperAction, current_status: PaperStatus) -> bool:
    """Check whether an action is valid from the given status.

    Example:
        >>> can_apply(PaperAction.SUBMIT, PaperStatus.DRAFT)
        True
        >>> can_apply(PaperAction.SUBMIT, PaperStatus.APPROVED)
        False
    """
    return PaperStatus(current_status) in get_transition(action).from_states


def target_status(
    action: PaperAction,
    current_status: PaperStatus,
    attachment_replaced: bool = False,
) -> Optional[PaperStatus]:
    """Resolve the status a paper ends up in after an action.

    Returns None for delete, which removes the paper.
    """
    transition = get_transition(action)
    if transition.action == PaperAction.UPDATE and attachment_replaced:
        return PaperStatus.PENDING_MODERATION
    return transition.to_state


def allowed_actions(current_status: PaperStatus) -> List[PaperAction]:
    """List actions whose from-set contains the status, in table order."""
    status = PaperStatus(current_status)
    return [action for action, t in TRANSITIONS.items() if status in t.from_states]


def allowed_actions_for_role(current_status: PaperStatus, role: UserRole) -> List[PaperAction]:
    """List actions a role could take from the given status."""
    return [
        action for action in allowed_actions(current_status)
        if TRANSITIONS[action].role == UserRole(role)
    ]


def is_terminal(status: PaperStatus) -> bool:
    """True when no action leads out of the status."""
    return PaperStatus(status) in TERMINAL_STATES
