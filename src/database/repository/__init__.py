"""Database repository package."""

from .content import ContentRepository

__all__ = ["ContentRepository"]
