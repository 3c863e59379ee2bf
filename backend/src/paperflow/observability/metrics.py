"""Prometheus metrics for PaperFlow.

Labels stay low-cardinality: actions, events and outcomes only, never
paper or user IDs.
"""

from prometheus_client import Counter, Gauge

# Workflow transitions
paper_transitions_total = Counter(
    "paperflow_transitions_total",
    "Workflow actions attempted on papers",
    ["action", "result"]  # result: success|denied|invalid_state|error
)

# Change notifications
paper_notifications_total = Counter(
    "paperflow_notifications_total",
    "Change events published to realtime subscribers",
    ["event", "result"]  # event: paperUpdated|paperDeleted, result: delivered|failed
)

# Attachment storage
attachment_operations_total = Counter(
    "paperflow_attachment_operations_total",
    "Attachment blob operations",
    ["operation", "result"]  # operation: store|delete, result: success|error
)

# Realtime connections
realtime_subscribers = Gauge(
    "paperflow_realtime_subscribers",
    "Number of connected realtime subscribers"
)


def record_transition(action: str, result: str) -> None:
    paper_transitions_total.labels(action=action, result=result).inc()


def record_notification(event: str, result: str, count: int = 1) -> None:
    if count:
        paper_notifications_total.labels(event=event, result=result).inc(count)


def record_attachment_operation(operation: str, result: str) -> None:
    attachment_operations_total.labels(operation=operation, result=result).inc()
