"""User SQLAlchemy model"""

import re
import uuid

from sqlalchemy import Column, Text, CheckConstraint, UniqueConstraint, Uuid
from sqlalchemy.orm import validates

from .base import Base, PortableJSONB, UTCDateTime, utcnow


class User(Base):
    """User model representing authenticated staff members.

    Each user has exactly one role (lecturer, examiner or hod) which decides
    which workflow actions they may perform. Examiners carry the list of
    course codes they moderate; the list scopes what they can see and act on.
    """
    __tablename__ = "user"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    role = Column(Text, nullable=False)
    department = Column(Text, nullable=True)
    assigned_course_codes = Column(PortableJSONB, nullable=False, default=list)
    status = Column(Text, nullable=False, default="ACTIVE")
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "role IN ('lecturer', 'examiner', 'hod')",
            name='ck_user_role'
        ),
        CheckConstraint(
            "status IN ('ACTIVE', 'DISABLED')",
            name='ck_user_status'
        ),
        UniqueConstraint('email', name='uq_user_email')
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    @validates('assigned_course_codes')
    def validate_course_codes(self, key, value):
        """Store course codes trimmed and upper-cased, without duplicates"""
        seen = []
        for code in value or []:
            normalized = str(code).strip().upper()
            if normalized and normalized not in seen:
                seen.append(normalized)
        return seen

