"""Generated content written by the content pipeline."""

import uuid

from sqlalchemy import Column, Float, String

from .base import Base, TimestampMixin


class GeneratedContent(Base, TimestampMixin):
    """
    One piece of generated content and its quality scores.

    The pipeline owns this table; the monitoring service only reads it.
    """

    __tablename__ = "generated_content"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content_type = Column(String(100), nullable=True)
    status = Column(String(50), nullable=True, index=True)
    quality_score = Column(Float, nullable=True)
    readability_score = Column(Float, nullable=True)
    engagement_prediction = Column(Float, nullable=True)
    processing_time_ms = Column(Float, nullable=True)

    def __repr__(self):
        return f"<GeneratedContent {self.id} {self.content_type} {self.status}>"
