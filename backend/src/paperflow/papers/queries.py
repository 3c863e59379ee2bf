"""Paper Query Service - role-scoped read paths.

Scoping is applied to every query and cannot be switched off by a filter:
lecturers see their own papers, examiners see papers in their assigned
courses, HODs see everything.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import desc, false
from sqlalchemy.orm import Query, Session

from ..domain.papers.authorization import Principal, can_view
from ..domain.papers.errors import NotFoundError
from ..domain.papers.paper_status import PaperStatus
from ..models.paper import Paper
from ..models.user import User


@dataclass
class PaperFilters:
    """Optional narrowing applied on top of role scoping."""
    status: Optional[PaperStatus] = None
    course_code: Optional[str] = None
    year: Optional[str] = None
    semester: Optional[str] = None
    paper_type: Optional[str] = None


class PaperQueryService:
    """Read-only access to papers for a given principal."""

    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, principal: Principal) -> Query:
        query = self.db.query(Paper)
        if principal.is_hod:
            return query
        if principal.is_lecturer:
            return query.filter(Paper.lecturer_id == principal.user_id)
        if principal.is_examiner:
            codes = sorted(principal.assigned_course_codes)
            if not codes:
                return query.filter(false())
            return query.filter(Paper.course_code.in_(codes))
        return query.filter(false())

    @staticmethod
    def _with_statuses(query: Query, statuses: Iterable[PaperStatus]) -> Query:
        return query.filter(Paper.status.in_([PaperStatus(s).value for s in statuses]))

    @staticmethod
    def _run(query: Query, limit: Optional[int], offset: int) -> Tuple[List[Paper], int]:
        total = query.count()
        query = query.order_by(desc(Paper.updated_at), desc(Paper.created_at))
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all(), total

    def list_papers(
        self,
        principal: Principal,
        filters: Optional[PaperFilters] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[Paper], int]:
        """List papers visible to the principal, most recently changed first.

        Returns:
            Tuple of (papers, total count before pagination)
        """
        filters = filters or PaperFilters()
        query = self._scoped(principal)

        if filters.status:
            query = self._with_statuses(query, [filters.status])
        if filters.course_code:
            query = query.filter(Paper.course_code == filters.course_code.strip().upper())
        if filters.year:
            query = query.filter(Paper.year == filters.year)
        if filters.semester:
            query = query.filter(Paper.semester == filters.semester)
        if filters.paper_type:
            query = query.filter(Paper.paper_type == filters.paper_type)

        return self._run(query, limit, offset)

    def pending_moderation(
        self, principal: Principal, limit: Optional[int] = None, offset: int = 0
    ) -> Tuple[List[Paper], int]:
        """Papers awaiting moderation in the examiner's courses (HOD: all)."""
        query = self._with_statuses(self._scoped(principal), [PaperStatus.PENDING_MODERATION])
        return self._run(query, limit, offset)

    def pending_approvals(
        self, principal: Principal, limit: Optional[int] = None, offset: int = 0
    ) -> Tuple[List[Paper], int]:
        """Papers awaiting or past HOD approval."""
        query = self._with_statuses(
            self._scoped(principal),
            [PaperStatus.PENDING_APPROVAL, PaperStatus.APPROVED],
        )
        return self._run(query, limit, offset)

    def moderated_archive(
        self, principal: Principal, limit: Optional[int] = None, offset: int = 0
    ) -> Tuple[List[Paper], int]:
        """Papers whose moderation concluded (approved or rejected), role-scoped."""
        query = self._with_statuses(
            self._scoped(principal),
            [PaperStatus.APPROVED, PaperStatus.REJECTED],
        )
        return self._run(query, limit, offset)

    def approved_repository(
        self,
        principal: Principal,
        department: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[Paper], int]:
        """Approved papers, optionally narrowed to a lecturer department."""
        query = self._with_statuses(self._scoped(principal), [PaperStatus.APPROVED])
        if department:
            query = query.join(Paper.lecturer).filter(User.department == department)
        return self._run(query, limit, offset)

    def get_paper(self, principal: Principal, paper_id: UUID) -> Paper:
        """Fetch one paper the principal is allowed to see.

        Raises:
            NotFoundError: Paper missing or outside the principal's scope
        """
        paper = self.db.query(Paper).filter(Paper.id == paper_id).first()
        if paper is None or not can_view(principal, paper):
            raise NotFoundError(paper_id)
        return paper
