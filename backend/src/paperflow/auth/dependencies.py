"""FastAPI dependencies for authentication.

Usage:
    @router.get("/papers")
    def list_papers(principal: Principal = Depends(get_current_principal)):
        ...

    @router.get("/papers/pending-approvals")
    def pending(principal: Principal = Depends(require_role(UserRole.HOD))):
        ...
"""

from typing import Annotated, Callable
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..database import get_db
from ..domain.papers.authorization import Principal
from ..domain.papers.errors import AuthorizationError, DenyReason
from ..models.user import User
from .jwt import decode_token
from .roles import UserRole, has_role

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_user(token: str, db: Session) -> User:
    """Validate a bearer token and load the active user it names.

    Raises:
        HTTPException 401: Token missing, invalid, expired, or user unknown
        HTTPException 403: User account disabled
    """
    try:
        payload = decode_token(token)
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise _unauthorized("Invalid token: missing user ID claim")
        user_id = UUID(user_id_str)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {e}")
    except ValueError as e:
        raise _unauthorized(f"Invalid token claims: {e}")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise _unauthorized("User not found")

    if user.status != "ACTIVE":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Extract and validate the Bearer token, returning the authenticated user."""
    return resolve_user(credentials.credentials, db)


def principal_from_user(user: User) -> Principal:
    """Map a stored user to the workflow's principal."""
    try:
        role = UserRole(user.role)
    except ValueError:
        # Invalid role in database (should never happen due to CHECK constraint)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Invalid user role: {user.role}",
        )

    return Principal(
        user_id=user.id,
        role=role,
        name=user.name,
        department=user.department,
        assigned_course_codes=frozenset(user.assigned_course_codes or []),
    )


def get_current_principal(current_user: User = Depends(get_current_user)) -> Principal:
    return principal_from_user(current_user)


def require_role(*allowed_roles: UserRole) -> Callable:
    """Create a dependency that only lets the given roles through.

    Roles are flat; a denied caller gets the same authorization error body
    as a denied workflow action.
    """

    def role_dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not has_role(principal.role.value, allowed_roles):
            names = " or ".join(r.value for r in allowed_roles)
            raise AuthorizationError(
                f"Only a {names} can access this resource",
                reason=DenyReason.WRONG_ROLE,
            )
        return principal

    return role_dependency


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
