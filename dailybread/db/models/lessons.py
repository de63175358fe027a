import uuid
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Lesson(Base):
    """Generated lesson for one passage/translation pair.

    Lessons are canonical: plan items point at them through
    ``PlanItemLesson`` so the same passage is only generated once.
    """
    __tablename__ = 'lessons'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_item_id = Column(UUID(as_uuid=True), ForeignKey('plan_items.id', ondelete='SET NULL'), nullable=True)
    passage_canonical = Column(String(255), nullable=False)
    passage_text = Column(Text, nullable=False)
    translation = Column(String(20), nullable=False, default='ESV')
    ai_triptych_json = Column(JSONB, nullable=False)
    story_manifest_json = Column(JSONB, nullable=False)
    quiz_json = Column(JSONB, nullable=False)
    audio_manifest_json = Column(JSONB, nullable=True)
    share_slug = Column(String(64), nullable=False, unique=True, index=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        Index('idx_lessons_canonical', 'passage_canonical', 'translation'),
    )


class PlanItemLesson(Base):
    __tablename__ = 'plan_item_lessons'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_item_id = Column(UUID(as_uuid=True), ForeignKey('plan_items.id', ondelete='CASCADE'), nullable=False, unique=True)
    lesson_id = Column(UUID(as_uuid=True), ForeignKey('lessons.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    lesson = relationship('Lesson')
