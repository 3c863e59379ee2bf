"""PaperFlow - examination paper moderation workflow."""

__version__ = "0.1.0"
