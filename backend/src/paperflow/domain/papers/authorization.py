"""Authorization gate for paper workflow actions.

Derived from the transition table: the table names the single role allowed
per action and whether ownership or course assignment is required. Checks
run in a fixed order (role, ownership/assignment, status) before any
mutation is attempted.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional
from uuid import UUID

from ...auth.roles import UserRole
from .errors import AuthorizationError, DenyReason, InvalidTransitionError
from .paper_status import PaperAction, PaperStatus, get_transition


@dataclass(frozen=True)
class Principal:
    """Resolved identity of the caller.

    How the identity was authenticated is not this module's concern.
    """
    user_id: UUID
    role: UserRole
    name: str
    department: Optional[str] = None
    assigned_course_codes: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_lecturer(self) -> bool:
        return self.role == UserRole.LECTURER

    @property
    def is_examiner(self) -> bool:
        return self.role == UserRole.EXAMINER

    @property
    def is_hod(self) -> bool:
        return self.role == UserRole.HOD

    def is_assigned_to(self, course_code: Optional[str]) -> bool:
        return bool(course_code) and course_code.strip().upper() in self.assigned_course_codes


@dataclass(frozen=True)
class AuthorizationDecision:
    """Outcome of an authorization check."""
    allowed: bool
    reason: Optional[DenyReason] = None
    message: Optional[str] = None

    @classmethod
    def allow(cls) -> "AuthorizationDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "AuthorizationDecision":
        return cls(allowed=False, reason=reason, message=message)


def authorize(principal: Principal, action: PaperAction, paper) -> AuthorizationDecision:
    """Decide whether a principal may apply an action to a paper.

    Args:
        principal: Caller identity
        action: Requested workflow action
        paper: Paper record (needs lecturer_id, course_code, status)

    Returns:
        AuthorizationDecision: allow, or deny with a distinguishable reason

    Example:
        >>> authorize(examiner, PaperAction.SUBMIT, paper).reason
        <DenyReason.WRONG_ROLE: 'wrong_role'>
    """
    transition = get_transition(action)

    if principal.role != transition.role:
        return AuthorizationDecision.deny(
            DenyReason.WRONG_ROLE,
            f"Only a {transition.role.value} can {transition.verb} a paper",
        )

    if transition.owner_only and paper.lecturer_id != principal.user_id:
        return AuthorizationDecision.deny(
            DenyReason.NOT_OWNER,
            f"Only the owning lecturer can {transition.verb} this paper",
        )

    if transition.course_scoped and not principal.is_assigned_to(paper.course_code):
        return AuthorizationDecision.deny(
            DenyReason.NOT_ASSIGNED,
            f"You are not assigned to course {paper.course_code}",
        )

    current = PaperStatus(paper.status)
    if current not in transition.from_states:
        return AuthorizationDecision.deny(
            DenyReason.INVALID_STATE,
            f"Cannot {transition.verb} a paper in status '{current.value}'",
        )

    return AuthorizationDecision.allow()


def ensure_authorized(principal: Principal, action: PaperAction, paper) -> None:
    """Raise the matching domain error when authorize() denies.

    Raises:
        AuthorizationError: wrong role, not owner, or not assigned
        InvalidTransitionError: status not in the action's from-set
    """
    decision = authorize(principal, action, paper)
    if decision.allowed:
        return

    if decision.reason == DenyReason.INVALID_STATE:
        raise InvalidTransitionError(
            decision.message,
            action=PaperAction(action).value,
            current_status=paper.status,
        )

    raise AuthorizationError(decision.message, reason=decision.reason)


def ensure_can_create(principal: Principal) -> None:
    """Only lecturers create papers."""
    if not principal.is_lecturer:
        raise AuthorizationError(
            "Only a lecturer can create a paper",
            reason=DenyReason.WRONG_ROLE,
        )


def can_view(principal: Principal, paper) -> bool:
    """Apply the same scoping rules as list queries to a single paper."""
    if principal.is_hod:
        return True
    if principal.is_lecturer:
        return paper.lecturer_id == principal.user_id
    if principal.is_examiner:
        return principal.is_assigned_to(paper.course_code)
    return False
