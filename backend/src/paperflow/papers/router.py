"""Papers API Router

Read endpoints are role-scoped; every mutating endpoint delegates to the
workflow service, which authorizes against the transition table. Workflow
errors propagate to the application-wide handler that maps them to status
codes.

Static paths are declared before /{paper_id} so they are not captured by it.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from ..auth.dependencies import get_current_principal, require_role
from ..auth.roles import UserRole
from ..domain.papers.authorization import Principal
from ..domain.papers.paper_status import PaperStatus
from .attachments import AttachmentManager, AttachmentUpload
from .dependencies import get_attachment_manager, get_paper_service, get_query_service
from .queries import PaperFilters, PaperQueryService
from .schemas import (
    CreatePaperCommand,
    ErrorResponse,
    PaperDeletedResponse,
    PaperListResponse,
    PaperResponse,
    RequestRevisionCommand,
    UpdatePaperCommand,
    build_command,
)
from .service import PaperWorkflowService

router = APIRouter(
    prefix="/papers",
    tags=["papers"],
    responses={
        403: {"model": ErrorResponse, "description": "Wrong role, not owner, or not assigned"},
        404: {"model": ErrorResponse, "description": "Paper not found"},
        409: {"model": ErrorResponse, "description": "Action not valid from current status"},
        422: {"model": ErrorResponse, "description": "Missing or invalid field"},
    },
)


def _to_upload(pdf: Optional[UploadFile]) -> Optional[AttachmentUpload]:
    if pdf is None:
        return None
    return AttachmentUpload(
        filename=pdf.filename or "",
        content=pdf.file.read(),
        content_type=pdf.content_type,
    )


def _respond(paper, attachments: AttachmentManager) -> PaperResponse:
    return PaperResponse.from_paper(paper, attachments.public_url)


def _list_response(result, attachments: AttachmentManager) -> PaperListResponse:
    papers, total = result
    return PaperListResponse(items=[_respond(p, attachments) for p in papers], total=total)


# ============================================================================
# Reads
# ============================================================================

@router.get("", response_model=PaperListResponse, summary="List papers visible to the caller")
def list_papers(
    status: Optional[PaperStatus] = Query(None, description="Filter by status"),
    course_code: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    semester: Optional[str] = Query(None),
    paper_type: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    queries: PaperQueryService = Depends(get_query_service),
    attachments: AttachmentManager = Depends(get_attachment_manager),
):
    """Lecturers see their own papers, examiners their assigned courses, HODs all."""
    filters = PaperFilters(
        status=status,
        course_code=course_code,
        year=year,
        semester=semester,
        paper_type=paper_type,
    )
    return _list_response(queries.list_papers(principal, filters, limit=limit, offset=offset), attachments)


@router.get("/pending-moderation", response_model=PaperListResponse)
def pending_moderation(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    queries: PaperQueryService = Depends(get_query_service),
    attachments: AttachmentManager = Depends(get_attachment_manager),
):
    """Papers awaiting moderation in the caller's courses."""
    return _list_response(queries.pending_moderation(principal, limit=limit, offset=offset), attachments)


@router.get("/pending-approvals", response_model=PaperListResponse)
def pending_approvals(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(require_role(UserRole.HOD)),
    queries: PaperQueryService = Depends(get_query_service),
    attachments: AttachmentManager = Depends(get_attachment_manager),
):
    """Papers in pending_approval or approved (HOD only)."""
    return _list_response(queries.pending_approvals(principal, limit=limit, offset=offset), attachments)


@router.get("/moderated", response_model=PaperListResponse)
def moderated_archive(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    queries: PaperQueryService = Depends(get_query_service),
    attachments: AttachmentManager = Depends(get_attachment_manager),
):
    return _list_response(queries.moderated_archive(principal, limit=limit, offset=offset), attachments)


@router.get("/approved", response_model=PaperListResponse)
def approved_repository(
    department: Optional[str] = Query(None, description="Lecturer department"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    queries: PaperQueryService = Depends(get_query_service),
    attachments: AttachmentManager = Depends(get_attachment_manager),
):
    return _list_response(
        queries.approved_repository(principal, department=department, limit=limit, offset=offset),
        attachments,
    )


@router.get("/{paper_id}", response_model=PaperResponse)
def get_paper(
    paper_id: UUID,
    principal: Principal = Depends(get_current_principal),
    queries: PaperQueryService = Depends(get_query_service),
    attachments: AttachmentManager = Depends(get_attachment_manager),
):
    """Get one paper; papers outside the caller's scope are reported as not found."""
    return _respond(queries.get_paper(principal, paper_id), attachments)


# ============================================================================
# Lecturer actions
# ============================================================================

@router.post("", response_model=PaperResponse, status_code=201, summary="Create a draft paper")
def create_paper(
    pdf: Optional[UploadFile] = File(None, description="Exam paper PDF"),
    course_code: Optional[str] = Form(None),
    course_name: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    semester: Optional[str] = Form(None),
    paper_type: Optional[str] = Form(None),
    principal: Principal = Depends(get_current_principal),
    service: PaperWorkflowService = Depends(get_paper_service),
):
    """Create a paper in draft from multipart metadata and a PDF."""
    command = build_command(
        CreatePaperCommand,
        course_code=course_code,
        course_name=course_name,
        year=year,
        semester=semester,
        paper_type=paper_type,
    )
    paper = service.create_paper(principal, command, _to_upload(pdf))
    return _respond(paper, service.attachments)


@router.put("/{paper_id}", response_model=PaperResponse, summary="Edit a draft paper")
def update_paper(
    paper_id: UUID,
    pdf: Optional[UploadFile] = File(None),
    course_code: Optional[str] = Form(None),
    course_name: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    semester: Optional[str] = Form(None),
    paper_type: Optional[str] = Form(None),
    principal: Principal = Depends(get_current_principal),
    service: PaperWorkflowService = Depends(get_paper_service),
):
    """Metadata edits keep draft; sending a new PDF moves the paper to moderation."""
    command = build_command(
        UpdatePaperCommand,
        course_code=course_code,
        course_name=course_name,
        year=year,
        semester=semester,
        paper_type=paper_type,
    )
    paper = service.update_paper(principal, paper_id, command, _to_upload(pdf))
    return _respond(paper, service.attachments)


@router.put("/{paper_id}/attachment", response_model=PaperResponse, summary="Upload a revised PDF")
def revise_upload(
    paper_id: UUID,
    pdf: Optional[UploadFile] = File(None),
    principal: Principal = Depends(get_current_principal),
    service: PaperWorkflowService = Depends(get_paper_service),
):
    paper = service.revise_upload(principal, paper_id, _to_upload(pdf))
    return _respond(paper, service.attachments)


@router.patch("/{paper_id}/submit", response_model=PaperResponse)
def submit_paper(
    paper_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: PaperWorkflowService = Depends(get_paper_service),
):
    return _respond(service.submit(principal, paper_id), service.attachments)


@router.delete("/{paper_id}", response_model=PaperDeletedResponse)
def delete_paper(
    paper_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: PaperWorkflowService = Depends(get_paper_service),
):
    """Delete a draft or revision_required paper and its PDF."""
    service.delete_paper(principal, paper_id)
    return PaperDeletedResponse(id=paper_id)


# ============================================================================
# Examiner actions
# ============================================================================

@router.patch("/{paper_id}/revision", response_model=PaperResponse)
def request_revision(
    paper_id: UUID,
    command: Optional[RequestRevisionCommand] = None,
    principal: Principal = Depends(get_current_principal),
    service: PaperWorkflowService = Depends(get_paper_service),
):
    """Send the paper back to the lecturer with a required comment."""
    paper = service.request_revision(principal, paper_id, command or RequestRevisionCommand())
    return _respond(paper, service.attachments)


@router.patch("/{paper_id}/approve/examiner", response_model=PaperResponse)
def examiner_approve(
    paper_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: PaperWorkflowService = Depends(get_paper_service),
):
    return _respond(service.examiner_approve(principal, paper_id), service.attachments)


# ============================================================================
# HOD actions
# ============================================================================

@router.patch("/{paper_id}/approve", response_model=PaperResponse)
def hod_approve(
    paper_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: PaperWorkflowService = Depends(get_paper_service),
):
    return _respond(service.hod_approve(principal, paper_id), service.attachments)


@router.patch("/{paper_id}/print", response_model=PaperResponse)
def mark_printed(
    paper_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: PaperWorkflowService = Depends(get_paper_service),
):
    return _respond(service.mark_printed(principal, paper_id), service.attachments)
