"""
Database package for the content datastore.

Provides the ``generated_content`` model, async connection management and
the read-only content repository used by the monitoring service.
"""

from .connection import DatabaseConnectionManager
from .models import Base, GeneratedContent
from .repository import ContentRepository

__all__ = [
    "Base",
    "ContentRepository",
    "DatabaseConnectionManager",
    "GeneratedContent",
]
