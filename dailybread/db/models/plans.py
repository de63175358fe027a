import uuid
from sqlalchemy import Column, String, DateTime, Date, Boolean, ForeignKey, Text, Integer, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Plan(Base):
    __tablename__ = 'plans'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    theme = Column(Text, nullable=True)
    schedule_type = Column(String(20), nullable=False, default='daily')  # daily|weekly
    schedule_mode = Column(String(20), nullable=False, default='synchronized')  # synchronized|self-guided
    source = Column(String(20), nullable=False, default='custom')  # guided|custom|import|ai-theme
    depth_level = Column(String(20), nullable=True)  # simple|moderate|deep
    is_public = Column(Boolean, nullable=False, default=False)
    featured = Column(Boolean, nullable=False, default=False)
    participant_count = Column(Integer, nullable=False, default=0)
    completion_count = Column(Integer, nullable=False, default=0)
    last_started_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    items = relationship(
        'PlanItem',
        back_populates='plan',
        cascade='all, delete-orphan',
        order_by='PlanItem.index',
    )

    __table_args__ = (
        Index('idx_plans_public_created', 'is_public', 'created_at'),
    )


class PlanItem(Base):
    __tablename__ = 'plan_items'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_id = Column(UUID(as_uuid=True), ForeignKey('plans.id', ondelete='CASCADE'), nullable=False)
    index = Column(Integer, nullable=False)
    date_target = Column(Date, nullable=True)
    references_text = Column(JSONB, nullable=False, default=list)
    category = Column(String(100), nullable=True)
    translation = Column(String(20), nullable=False, default='ESV')
    status = Column(String(20), nullable=False, default='pending')  # pending|ready|published
    created_at = Column(DateTime(timezone=True), default=now_utc)

    plan = relationship('Plan', back_populates='items')

    __table_args__ = (
        Index('idx_plan_items_plan_index', 'plan_id', 'index'),
    )

    @property
    def primary_reference(self):
        refs = self.references_text or []
        return refs[0] if refs else None


class PlanShare(Base):
    __tablename__ = 'plan_shares'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_id = Column(UUID(as_uuid=True), ForeignKey('plans.id', ondelete='CASCADE'), nullable=False, index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    share_token = Column(String(64), nullable=False, unique=True, index=True)
    message = Column(Text, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    use_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)


class UserPlanEnrollment(Base):
    __tablename__ = 'user_plan_enrollments'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    plan_id = Column(UUID(as_uuid=True), ForeignKey('plans.id', ondelete='CASCADE'), nullable=False)
    enrolled_at = Column(DateTime(timezone=True), default=now_utc)
    custom_start_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    plan = relationship('Plan')

    __table_args__ = (
        UniqueConstraint('user_id', 'plan_id', name='uq_enrollment_user_plan'),
    )
