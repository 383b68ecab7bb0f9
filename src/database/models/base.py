"""Base database models and mixins."""

from sqlalchemy import Column, DateTime, MetaData
from sqlalchemy.orm import declarative_base, declared_attr
from sqlalchemy.sql import func

metadata = MetaData()
Base = declarative_base(metadata=metadata)


class TimestampMixin:
    """Mixin for automatic timestamp management."""

    @declared_attr
    def created_at(self):
        return Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
        )
