"""Database models package."""

from .base import Base, TimestampMixin
from .content import GeneratedContent

__all__ = [
    "Base",
    "GeneratedContent",
    "TimestampMixin",
]
