"""Paper and ModerationComment SQLAlchemy models

Paper is the examination paper record tracked through the moderation
workflow. ModerationComment rows form the paper's append-only feedback log.
"""

import uuid

from sqlalchemy import (
    Column, Text, ForeignKey, BigInteger, Integer, CheckConstraint, Index,
    UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship, validates

from ..domain.papers.paper_status import PaperStatus
from .base import Base, UTCDateTime, utcnow

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in PaperStatus)


class Paper(Base):
    """Examination paper with its current PDF attachment and workflow status.

    Status only changes through the workflow service. The attachment
    reference is a relative storage key; the previous blob is deleted when a
    new one replaces it, so only the latest PDF is ever retained.
    """
    __tablename__ = "paper"
    __table_args__ = (
        Index("ix_paper_lecturer_id", "lecturer_id"),
        Index("ix_paper_status", "status"),
        Index("ix_paper_course_code_status", "course_code", "status"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_paper_status"),
        CheckConstraint(
            "NOT (status = 'draft' AND examiner_id IS NOT NULL)",
            name="ck_paper_draft_has_no_examiner",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    status = Column(Text, nullable=False, default=PaperStatus.DRAFT.value)
    lecturer_id = Column(Uuid(as_uuid=True), ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    examiner_id = Column(Uuid(as_uuid=True), ForeignKey("user.id", ondelete="SET NULL"), nullable=True)

    # Descriptive metadata
    course_code = Column(Text, nullable=False)
    course_name = Column(Text, nullable=False)
    year = Column(Text, nullable=False)
    semester = Column(Text, nullable=False)
    paper_type = Column(Text, nullable=False)

    # Current attachment (relative storage key, never an absolute host path)
    attachment_ref = Column(Text, nullable=False)
    attachment_filename = Column(Text, nullable=True)
    attachment_size_bytes = Column(BigInteger, nullable=True)
    attachment_sha256 = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    lecturer = relationship("User", foreign_keys=[lecturer_id], lazy="joined")
    examiner = relationship("User", foreign_keys=[examiner_id], lazy="joined")
    moderation_comments = relationship(
        "ModerationComment",
        back_populates="paper",
        order_by="ModerationComment.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("course_code")
    def validate_course_code(self, key, value):
        return value.strip().upper() if value else value

    @property
    def status_enum(self) -> PaperStatus:
        return PaperStatus(self.status)

    @property
    def lecturer_name(self):
        return self.lecturer.name if self.lecturer else None

    @property
    def examiner_name(self):
        return self.examiner.name if self.examiner else None

    @property
    def department(self):
        return self.lecturer.department if self.lecturer else None

    def __repr__(self) -> str:
        return f"<Paper id={self.id} course={self.course_code} status={self.status}>"


class ModerationComment(Base):
    """A single moderation note appended when revision is requested.

    Entries are append-only: rows are inserted with the next position and
    are never updated. They disappear only when the whole paper is deleted.
    """
    __tablename__ = "paper_moderation_comment"
    __table_args__ = (
        UniqueConstraint("paper_id", "position", name="uq_moderation_comment_position"),
        Index("ix_moderation_comment_paper_id", "paper_id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    paper_id = Column(Uuid(as_uuid=True), ForeignKey("paper.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    author_id = Column(Uuid(as_uuid=True), ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    author_name = Column(Text, nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    paper = relationship("Paper", back_populates="moderation_comments")

