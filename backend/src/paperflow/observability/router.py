"""Operational endpoints: Prometheus scrape, health and readiness."""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session

from ..database import get_db
from ..domain.papers.ports.attachment_storage_port import AttachmentStoragePort
from ..papers.dependencies import get_storage
from .health import HealthStatus, build_report, check_database

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health", summary="Database and attachment storage health")
def health_check(
    db: Session = Depends(get_db),
    storage: AttachmentStoragePort = Depends(get_storage),
):
    """200 when every component answers, 503 otherwise."""
    report = build_report(db, storage)
    return JSONResponse(content=report.to_dict(), status_code=report.http_status)


@router.get("/ready", summary="Readiness probe")
def readiness_check(db: Session = Depends(get_db)):
    database = check_database(db)
    if database.status is HealthStatus.HEALTHY:
        return {"status": "ready"}
    return JSONResponse(content={"status": "not_ready", "message": database.message}, status_code=503)
