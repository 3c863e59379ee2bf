"""SQLAlchemy Models for PaperFlow"""

from .base import Base
from .user import User
from .paper import Paper, ModerationComment

__all__ = [
    "Base",
    "User",
    "Paper",
    "ModerationComment",
]
