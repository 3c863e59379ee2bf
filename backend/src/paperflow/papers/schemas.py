"""Pydantic schemas for the Papers API

One command object per action body, validated at the boundary before it
reaches the workflow service, plus the paper response shape shared by the
HTTP API and realtime events.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..domain.papers.errors import ValidationError
from ..domain.papers.paper_status import PaperStatus, allowed_actions

CommandT = TypeVar("CommandT", bound=BaseModel)


# ============================================================================
# Commands
# ============================================================================

class CreatePaperCommand(BaseModel):
    """Metadata for POST /papers (sent as multipart form fields with the PDF)"""
    course_code: str = Field(..., min_length=1, max_length=32)
    course_name: str = Field(..., min_length=1, max_length=255)
    year: str = Field(..., min_length=1, max_length=16)
    semester: str = Field(..., min_length=1, max_length=32)
    paper_type: str = Field(..., min_length=1, max_length=64)

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("course_code")
    @classmethod
    def upper_course_code(cls, v: str) -> str:
        return v.upper()


class UpdatePaperCommand(BaseModel):
    """Partial metadata update for PUT /papers/{id}; omitted fields are kept"""
    course_code: Optional[str] = Field(None, min_length=1, max_length=32)
    course_name: Optional[str] = Field(None, min_length=1, max_length=255)
    year: Optional[str] = Field(None, min_length=1, max_length=16)
    semester: Optional[str] = Field(None, min_length=1, max_length=32)
    paper_type: Optional[str] = Field(None, min_length=1, max_length=64)

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("course_code")
    @classmethod
    def upper_course_code(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    def changes(self) -> Dict[str, str]:
        return self.model_dump(exclude_none=True)


class RequestRevisionCommand(BaseModel):
    """Body of PATCH /papers/{id}/revision"""
    comment: Optional[str] = Field(None, description="Feedback for the lecturer (required, non-blank)")

    model_config = ConfigDict(extra="forbid")


def build_command(command_cls: Type[CommandT], **data: Any) -> CommandT:
    """Build a command from loosely typed input (e.g. form fields).

    Raises:
        ValidationError: First offending field, as a domain validation error
    """
    try:
        return command_cls(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(f"{field}: {first.get('msg')}" if field else first.get("msg"), field=field)


# ============================================================================
# Responses
# ============================================================================

class ModerationCommentResponse(BaseModel):
    """One entry of a paper's moderation log"""
    author_id: Optional[UUID] = None
    author_name: str
    text: str
    timestamp: datetime


class PaperResponse(BaseModel):
    """Full paper snapshot with resolved names and a servable attachment URL"""
    id: UUID
    status: PaperStatus
    lecturer_id: UUID
    lecturer_name: Optional[str] = None
    examiner_id: Optional[UUID] = None
    examiner_name: Optional[str] = None
    department: Optional[str] = None
    course_code: str
    course_name: str
    year: str
    semester: str
    paper_type: str
    attachment_url: Optional[str] = Field(None, description="Servable URL, never a host path")
    attachment_filename: Optional[str] = None
    attachment_size_bytes: Optional[int] = None
    moderation_comments: List[ModerationCommentResponse] = Field(default_factory=list)
    allowed_actions: List[str] = Field(default_factory=list, description="Actions valid from the current status")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_paper(cls, paper, url_for: Callable[[Optional[str]], Optional[str]]) -> "PaperResponse":
        """Serialize a Paper model.

        Args:
            paper: Paper ORM instance (relationships loaded)
            url_for: Maps an attachment reference to a servable URL
        """
        return cls(
            id=paper.id,
            status=PaperStatus(paper.status),
            lecturer_id=paper.lecturer_id,
            lecturer_name=paper.lecturer_name,
            examiner_id=paper.examiner_id,
            examiner_name=paper.examiner_name,
            department=paper.department,
            course_code=paper.course_code,
            course_name=paper.course_name,
            year=paper.year,
            semester=paper.semester,
            paper_type=paper.paper_type,
            attachment_url=url_for(paper.attachment_ref),
            attachment_filename=paper.attachment_filename,
            attachment_size_bytes=paper.attachment_size_bytes,
            moderation_comments=[
                ModerationCommentResponse(
                    author_id=c.author_id,
                    author_name=c.author_name,
                    text=c.text,
                    timestamp=c.created_at,
                )
                for c in sorted(paper.moderation_comments, key=lambda c: c.position)
            ],
            allowed_actions=[a.value for a in allowed_actions(paper.status)],
            created_at=paper.created_at,
            updated_at=paper.updated_at,
        )


class PaperListResponse(BaseModel):
    """Response for paper list endpoints"""
    items: List[PaperResponse]
    total: int


class PaperDeletedResponse(BaseModel):
    id: UUID
    deleted: bool = True


class ErrorResponse(BaseModel):
    """Error body returned for every workflow failure"""
    error: str = Field(..., description="Failure kind, e.g. invalid_transition")
    message: str
    reason: Optional[str] = None
    action: Optional[str] = None
    current_status: Optional[str] = None
    field: Optional[str] = None
