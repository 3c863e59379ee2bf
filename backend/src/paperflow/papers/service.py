"""Paper workflow service - entry point for every mutating paper action.

Each action follows the same sequence:

1. read the paper fresh (row lock where the database supports it)
2. authorize (role, ownership/assignment, current status)
3. perform side effects (attachment store, moderation comment)
4. re-check the guard against freshly read state
5. commit, then drop the superseded attachment blob
6. notify subscribers

Authorization runs before anything is written, so a denied action never
leaves partial state behind.
"""

import logging
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..domain.papers.authorization import Principal, ensure_authorized, ensure_can_create
from ..domain.papers.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    PaperWorkflowError,
    ValidationError,
)
from ..domain.papers.paper_status import PaperAction, PaperStatus, get_transition, target_status
from ..models.base import as_utc, utcnow
from ..models.paper import Paper
from ..observability.metrics import record_transition
from ..realtime.notifier import ChangeNotifier
from .attachments import AttachmentManager, AttachmentUpload
from .moderation_log import append_comment
from .schemas import CreatePaperCommand, RequestRevisionCommand, UpdatePaperCommand

logger = logging.getLogger(__name__)


def touch(paper: Paper) -> None:
    """Refresh updated_at without ever moving it backwards."""
    now = utcnow()
    previous = as_utc(paper.updated_at)
    paper.updated_at = max(now, previous) if previous else now


class PaperWorkflowService:
    """Service for paper workflow operations."""

    def __init__(
        self,
        db: Session,
        attachments: AttachmentManager,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.db = db
        self.attachments = attachments
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def create_paper(
        self,
        principal: Principal,
        command: CreatePaperCommand,
        upload: Optional[AttachmentUpload],
    ) -> Paper:
        """Create a draft paper owned by the calling lecturer.

        The PDF is stored before the record is inserted; if the insert
        fails the blob is removed again.

        Raises:
            AuthorizationError: Caller is not a lecturer
            ValidationError: Missing/invalid PDF
            StorageError: PDF could not be stored
        """
        try:
            ensure_can_create(principal)
        except AuthorizationError:
            record_transition("create", "denied")
            raise

        stored = self.attachments.stage(upload)
        try:
            now = utcnow()
            paper = Paper(
                status=PaperStatus.DRAFT.value,
                lecturer_id=principal.user_id,
                course_code=command.course_code,
                course_name=command.course_name,
                year=command.year,
                semester=command.semester,
                paper_type=command.paper_type,
                created_at=now,
                updated_at=now,
            )
            self.attachments.apply(paper, stored)
            self.db.add(paper)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.attachments.discard(stored)
            record_transition("create", "error")
            raise

        record_transition("create", "success")
        logger.info(
            f"Paper created for course {paper.course_code}",
            extra={"paper_id": paper.id, "user_id": principal.user_id, "action": "create"},
        )
        self._notify_updated(paper)
        return paper

    def submit(self, principal: Principal, paper_id: UUID) -> Paper:
        """draft | revision_required -> pending_moderation (owning lecturer)."""
        return self._apply(principal, paper_id, PaperAction.SUBMIT)

    def request_revision(
        self,
        principal: Principal,
        paper_id: UUID,
        command: RequestRevisionCommand,
    ) -> Paper:
        """pending_moderation -> revision_required, appending the examiner's comment.

        Raises:
            ValidationError: Comment missing or blank (nothing is changed)
        """
        def add_comment(paper: Paper) -> None:
            append_comment(paper, principal, command.comment)

        return self._apply(principal, paper_id, PaperAction.REQUEST_REVISION, mutate=add_comment)

    def examiner_approve(self, principal: Principal, paper_id: UUID) -> Paper:
        """pending_moderation -> pending_approval (assigned examiner)."""
        return self._apply(principal, paper_id, PaperAction.EXAMINER_APPROVE)

    def hod_approve(self, principal: Principal, paper_id: UUID) -> Paper:
        """pending_approval -> approved (HOD)."""
        return self._apply(principal, paper_id, PaperAction.HOD_APPROVE)

    def mark_printed(self, principal: Principal, paper_id: UUID) -> Paper:
        """approved -> printed (HOD). printed is terminal."""
        return self._apply(principal, paper_id, PaperAction.MARK_PRINTED)

    def revise_upload(
        self,
        principal: Principal,
        paper_id: UUID,
        upload: Optional[AttachmentUpload],
    ) -> Paper:
        """Replace the PDF and send the paper back to moderation."""
        return self._apply(principal, paper_id, PaperAction.REVISE_UPLOAD, upload=upload)

    def update_paper(
        self,
        principal: Principal,
        paper_id: UUID,
        command: Optional[UpdatePaperCommand] = None,
        upload: Optional[AttachmentUpload] = None,
    ) -> Paper:
        """Edit draft metadata, optionally replacing the PDF.

        Metadata-only edits keep the paper in draft; a new PDF moves it
        to pending_moderation.
        """
        changes = command.changes() if command else {}

        def apply_changes(paper: Paper) -> None:
            for field, value in changes.items():
                setattr(paper, field, value)

        return self._apply(
            principal, paper_id, PaperAction.UPDATE, mutate=apply_changes, upload=upload
        )

    def delete_paper(self, principal: Principal, paper_id: UUID) -> None:
        """Remove a pre-moderation paper and purge its attachment.

        The blob is purged after the delete commits; a failed purge is logged
        and leaves an orphan blob, the paper stays deleted.
        """
        action = PaperAction.DELETE
        paper = self._load_for_update(paper_id)
        self._authorize(principal, action, paper)

        attachment_ref = paper.attachment_ref
        from_status = paper.status
        try:
            self.db.delete(paper)
            self.db.commit()
        except Exception:
            self.db.rollback()
            record_transition(action.value, "error")
            raise

        record_transition(action.value, "success")
        logger.info(
            f"Paper deleted from status {from_status}",
            extra={
                "paper_id": paper_id,
                "user_id": principal.user_id,
                "action": action.value,
                "from_status": from_status,
            },
        )
        self.attachments.purge(attachment_ref)
        if self.notifier is not None:
            self.notifier.paper_deleted(paper_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_for_update(self, paper_id: UUID) -> Paper:
        """Fresh read of a paper, bypassing any stale identity-map copy.

        Mutations are not view-scoped: a caller acting on a paper they may
        not touch gets an authorization error, not a not-found.

        Raises:
            NotFoundError: No paper with this id
        """
        paper = (
            self.db.query(Paper)
            .filter(Paper.id == paper_id)
            .with_for_update(of=Paper)
            .populate_existing()
            .first()
        )
        if paper is None:
            raise NotFoundError(paper_id)
        return paper

    def _authorize(self, principal: Principal, action: PaperAction, paper: Paper) -> None:
        try:
            ensure_authorized(principal, action, paper)
        except InvalidTransitionError as e:
            record_transition(action.value, "invalid_state")
            logger.info(
                f"Rejected {action.value}: {e.message}",
                extra={"paper_id": paper.id, "user_id": principal.user_id, "action": action.value},
            )
            raise
        except AuthorizationError as e:
            record_transition(action.value, "denied")
            logger.info(
                f"Denied {action.value} ({e.reason.value}): {e.message}",
                extra={"paper_id": paper.id, "user_id": principal.user_id, "action": action.value},
            )
            raise

    def _apply(
        self,
        principal: Principal,
        paper_id: UUID,
        action: PaperAction,
        mutate: Optional[Callable[[Paper], None]] = None,
        upload: Optional[AttachmentUpload] = None,
    ) -> Paper:
        transition = get_transition(action)
        paper = self._load_for_update(paper_id)
        self._authorize(principal, action, paper)

        if transition.replaces_attachment and upload is None:
            raise ValidationError("PDF attachment is required", field="pdf")

        stored = None
        swap = None
        try:
            if upload is not None:
                stored = self.attachments.stage(upload)
                # Blob I/O can be slow; decide on state read after it finished
                paper = self._load_for_update(paper_id)
                self._authorize(principal, action, paper)

            from_status = paper.status
            if stored is not None:
                swap = self.attachments.apply(paper, stored)
            if mutate is not None:
                mutate(paper)
            if transition.sets_examiner:
                paper.examiner_id = principal.user_id

            new_status = target_status(action, PaperStatus(from_status), attachment_replaced=stored is not None)
            paper.status = new_status.value
            touch(paper)
            self.db.commit()
        except PaperWorkflowError:
            self.db.rollback()
            self.attachments.discard(stored)
            raise
        except Exception:
            self.db.rollback()
            self.attachments.discard(stored)
            record_transition(action.value, "error")
            raise

        self.attachments.finalize(swap)
        record_transition(action.value, "success")
        logger.info(
            f"Paper {action.value}: {from_status} -> {new_status.value}",
            extra={
                "paper_id": paper.id,
                "user_id": principal.user_id,
                "action": action.value,
                "from_status": from_status,
                "to_status": new_status.value,
            },
        )
        self._notify_updated(paper)
        return paper

    def _notify_updated(self, paper: Paper) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.paper_updated(paper)
        except Exception as e:
            logger.error(
                f"Change notification failed: {e}",
                extra={"paper_id": paper.id},
                exc_info=True,
            )
