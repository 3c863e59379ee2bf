"""User roles for PaperFlow.

Roles are flat: every workflow action is permitted to exactly one role,
there is no inheritance between them.

Permission Matrix:
┌───────────────────────────┬──────────┬──────────┬─────┐
│ Action                    │ LECTURER │ EXAMINER │ HOD │
├───────────────────────────┼──────────┼──────────┼─────┤
│ Create / edit own draft   │    ✓     │          │     │
│ Submit / revise / delete  │  owner   │          │     │
│ Request revision          │          │ assigned │     │
│ Approve (moderation)      │          │ assigned │     │
│ Final approval / printed  │          │          │  ✓  │
│ View papers               │   own    │ assigned │ all │
└───────────────────────────┴──────────┴──────────┴─────┘
"""

from enum import Enum
from typing import Iterable


class UserRole(str, Enum):
    """User roles in PaperFlow.

    Values are stored as TEXT in the database and must match exactly.
    """
    LECTURER = "lecturer"
    EXAMINER = "examiner"
    HOD = "hod"


def has_role(user_role: str, allowed_roles: Iterable[UserRole]) -> bool:
    """Check if a stored role string is one of the allowed roles.

    Examples:
        >>> has_role("hod", [UserRole.HOD])
        True
        >>> has_role("lecturer", [UserRole.EXAMINER, UserRole.HOD])
        False
    """
    try:
        role = UserRole(user_role)
    except ValueError:
        return False
    return role in set(allowed_roles)
