import uuid
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text, Integer, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class EmailQueueEntry(Base):
    __tablename__ = 'email_queue'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email_type = Column(String(50), nullable=False)  # welcome|plan_invite|lesson_reminder
    recipient_email = Column(String(255), nullable=False)
    recipient_user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    template_data = Column(JSONB, nullable=False, default=dict)
    sent = Column(Boolean, nullable=False, default=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        Index('idx_email_queue_pending', 'sent', 'attempts', 'created_at'),
    )
