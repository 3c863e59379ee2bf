"""Change Notifier - broadcasts committed paper changes.

Called by the workflow service after a successful commit, exactly once per
mutating action. Failures are logged and counted, never raised: a dropped
notification must not fail or roll back the transition that produced it.
"""

import logging
from typing import Callable, Optional
from uuid import UUID

from ..observability.metrics import record_notification
from ..papers.schemas import PaperResponse
from .hub import Broadcaster, get_broadcaster

logger = logging.getLogger(__name__)

PAPER_UPDATED = "paperUpdated"
PAPER_DELETED = "paperDeleted"


class ChangeNotifier:
    """Publishes paperUpdated / paperDeleted events to all subscribers."""

    def __init__(
        self,
        broadcaster: Optional[Broadcaster] = None,
        url_for: Optional[Callable[[Optional[str]], Optional[str]]] = None,
    ):
        self.broadcaster = broadcaster or get_broadcaster()
        self.url_for = url_for or (lambda ref: None)

    def paper_updated(self, paper) -> int:
        """Publish the full snapshot of a paper that was created or changed."""
        try:
            payload = PaperResponse.from_paper(paper, self.url_for).model_dump(mode="json")
        except Exception as e:
            record_notification(PAPER_UPDATED, "failed")
            logger.error(
                f"Could not serialise paper for notification: {e}",
                extra={"paper_id": getattr(paper, "id", None), "event": PAPER_UPDATED},
                exc_info=True,
            )
            return 0
        return self._publish(PAPER_UPDATED, payload, paper.id)

    def paper_deleted(self, paper_id: UUID) -> int:
        """Publish the id of a paper that no longer exists, as a bare string."""
        return self._publish(PAPER_DELETED, str(paper_id), paper_id)

    def _publish(self, event: str, payload, paper_id) -> int:
        try:
            delivered = self.broadcaster.publish(event, payload)
        except Exception as e:
            record_notification(event, "failed")
            logger.error(
                f"Notification publish failed: {e}",
                extra={"paper_id": paper_id, "event": event},
                exc_info=True,
            )
            return 0

        record_notification(event, "delivered", delivered)
        logger.debug(
            f"Published {event} to {delivered} subscriber(s)",
            extra={"paper_id": paper_id, "event": event},
        )
        return delivered
