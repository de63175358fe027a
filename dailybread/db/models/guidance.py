import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class SpiritualGuidance(Base):
    __tablename__ = 'spiritual_guidance'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    situation_text = Column(Text, nullable=False)
    # [{reference, text, relevance, translation}]
    passages = Column(JSONB, nullable=False)
    # {opening, scriptural_insights, reflections, prayer_points, encouragement}
    guidance_content = Column(JSONB, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('idx_guidance_user_created', 'user_id', 'created_at'),
    )
