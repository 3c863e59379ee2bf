"""Component probes behind ``/health`` and ``/ready``.

A probe is any callable; it passes if it returns without raising. Probe
failures are reported in the body, never propagated.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from ..domain.papers.ports.attachment_storage_port import AttachmentStoragePort
from .logging_config import get_logger

logger = get_logger(__name__)

STORAGE_PROBE_KEY = "healthcheck/.probe"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None

    def to_dict(self) -> dict:
        return {"status": self.status.value, "message": self.message, "latency_ms": self.latency_ms}


@dataclass
class HealthReport:
    components: Dict[str, ComponentHealth] = field(default_factory=dict)

    @property
    def status(self) -> HealthStatus:
        if all(c.status is HealthStatus.HEALTHY for c in self.components.values()):
            return HealthStatus.HEALTHY
        return HealthStatus.UNHEALTHY

    @property
    def http_status(self) -> int:
        return 200 if self.status is HealthStatus.HEALTHY else 503

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "components": {name: c.to_dict() for name, c in self.components.items()},
        }


def probe(name: str, check: Callable[[], object]) -> ComponentHealth:
    """Time ``check`` and turn its outcome into a component status."""
    started = time.perf_counter()
    try:
        check()
    except Exception as e:
        logger.error(f"Health probe '{name}' failed: {e}")
        return ComponentHealth(status=HealthStatus.UNHEALTHY, message=f"{type(e).__name__}: {e}")
    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    return ComponentHealth(status=HealthStatus.HEALTHY, message="OK", latency_ms=latency_ms)


def check_database(db: Session) -> ComponentHealth:
    return probe("database", lambda: db.execute(text("SELECT 1")))


def check_attachment_storage(storage: AttachmentStoragePort) -> ComponentHealth:
    # A missing sentinel is the normal answer; only a backend error counts.
    return probe("attachment_storage", lambda: storage.exists(STORAGE_PROBE_KEY))


def build_report(db: Session, storage: AttachmentStoragePort) -> HealthReport:
    return HealthReport(
        components={
            "database": check_database(db),
            "attachment_storage": check_attachment_storage(storage),
        }
    )
