"""Read-only repository over generated content."""

import time
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from src.core.exceptions import DataSourceError
from src.core.logging import get_logger
from src.monitoring.interfaces import ContentRecord, ContentStoreInterface

from ..connection import DatabaseConnectionManager
from ..models import GeneratedContent

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_record(row: GeneratedContent) -> ContentRecord:
    return ContentRecord(
        id=str(row.id),
        content_type=row.content_type,
        status=row.status,
        quality_score=row.quality_score,
        readability_score=row.readability_score,
        engagement_prediction=row.engagement_prediction,
        processing_time_ms=row.processing_time_ms,
        created_at=_as_utc(row.created_at),
    )


class ContentRepository(ContentStoreInterface):
    """
    Content store backed by the ``generated_content`` table.

    Driver errors never leave this class as SQLAlchemy exceptions; they are
    re-raised as ``DataSourceError``.
    """

    def __init__(self, connection_manager: DatabaseConnectionManager):
        self.connection_manager = connection_manager

    async def fetch_content_since(
        self,
        since: datetime,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[ContentRecord]:
        """
        Fetch content created at or after ``since``.

        Args:
            since: Inclusive lower bound on ``created_at``
            limit: Maximum number of rows, unlimited when None
            newest_first: Order by ``created_at`` descending instead of ascending

        Returns:
            List of content records

        Raises:
            DataSourceError: If the query fails
        """
        order = (
            GeneratedContent.created_at.desc() if newest_first else GeneratedContent.created_at.asc()
        )
        stmt = (
            select(GeneratedContent)
            .where(GeneratedContent.created_at >= _as_utc(since))
            .order_by(order)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self.connection_manager.get_async_session() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise DataSourceError(
                f"Failed to fetch generated content: {e}", source_name="generated_content"
            ) from e

        return [_to_record(row) for row in rows]

    async def ping(self) -> float:
        """Run a trivial query and return its round-trip time in milliseconds."""
        started = time.perf_counter()
        try:
            await self.connection_manager.ping()
        except SQLAlchemyError as e:
            raise DataSourceError(f"Database ping failed: {e}", source_name="database") from e
        return (time.perf_counter() - started) * 1000
