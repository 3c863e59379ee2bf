"""Moderation Log - append-only feedback attached to a paper.

Entries are created when an examiner requests a revision. They are never
edited or removed individually; the whole log goes with its paper.
"""

from typing import List, Optional

from ..domain.papers.authorization import Principal
from ..domain.papers.errors import ValidationError
from ..models.base import utcnow
from ..models.paper import ModerationComment, Paper


def append_comment(paper: Paper, author: Principal, text: Optional[str]) -> ModerationComment:
    """Append a comment to the end of the paper's log (not committed).

    Raises:
        ValidationError: If the text is missing or whitespace only
    """
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError("Moderation comment is required", field="comment")

    comment = ModerationComment(
        position=len(paper.moderation_comments),
        author_id=author.user_id,
        author_name=author.name,
        text=cleaned,
        created_at=utcnow(),
    )
    paper.moderation_comments.append(comment)
    return comment


def list_comments(paper: Paper) -> List[ModerationComment]:
    """Comments in insertion order."""
    return sorted(paper.moderation_comments, key=lambda c: c.position)


def latest_comment(paper: Paper) -> Optional[ModerationComment]:
    comments = list_comments(paper)
    return comments[-1] if comments else None
