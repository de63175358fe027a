"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-10-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _ts(name: str, nullable: bool = True, default_now: bool = False):
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text('now()') if default_now else None,
        nullable=nullable,
    )


def _jsonb(name: str, nullable: bool = False):
    return sa.Column(name, postgresql.JSONB(astext_type=sa.Text()), nullable=nullable)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(40), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('referral_code', sa.String(16), nullable=True),
        sa.Column('referred_by_user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _ts('created_at', default_now=True),
        _ts('updated_at', default_now=True),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_referral_code'), 'users', ['referral_code'], unique=True)
    op.create_index(op.f('ix_users_referred_by_user_id'), 'users', ['referred_by_user_id'], unique=False)

    op.create_table(
        'auth_tokens',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('purpose', sa.String(20), nullable=False),
        sa.Column('token_id', sa.String(64), nullable=False, unique=True),
        sa.Column('token_hash', sa.Text(), nullable=False),
        _ts('created_at', nullable=False, default_now=True),
        _ts('expires_at'),
        _ts('used_at'),
    )
    op.create_index('idx_auth_tokens_user_purpose', 'auth_tokens', ['user_id', 'purpose'], unique=False)

    op.create_table(
        'plans',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('theme', sa.Text(), nullable=True),
        sa.Column('schedule_type', sa.String(20), nullable=False, server_default='daily'),
        sa.Column('schedule_mode', sa.String(20), nullable=False, server_default='synchronized'),
        sa.Column('source', sa.String(20), nullable=False, server_default='custom'),
        sa.Column('depth_level', sa.String(20), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('participant_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completion_count', sa.Integer(), nullable=False, server_default='0'),
        _ts('last_started_at'),
        _ts('created_at', default_now=True),
        _ts('updated_at', default_now=True),
    )
    op.create_index(op.f('ix_plans_user_id'), 'plans', ['user_id'], unique=False)
    op.create_index('idx_plans_public_created', 'plans', ['is_public', 'created_at'], unique=False)

    op.create_table(
        'plan_items',
        _id(),
        sa.Column('plan_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column('index', sa.Integer(), nullable=False),
        sa.Column('date_target', sa.Date(), nullable=True),
        _jsonb('references_text'),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('translation', sa.String(20), nullable=False, server_default='ESV'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        _ts('created_at', default_now=True),
    )
    op.create_index('idx_plan_items_plan_index', 'plan_items', ['plan_id', 'index'], unique=False)

    op.create_table(
        'lessons',
        _id(),
        sa.Column('plan_item_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('plan_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('passage_canonical', sa.String(255), nullable=False),
        sa.Column('passage_text', sa.Text(), nullable=False),
        sa.Column('translation', sa.String(20), nullable=False, server_default='ESV'),
        _jsonb('ai_triptych_json'),
        _jsonb('story_manifest_json'),
        _jsonb('quiz_json'),
        _jsonb('audio_manifest_json', nullable=True),
        sa.Column('share_slug', sa.String(64), nullable=False),
        _ts('published_at'),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts('created_at', default_now=True),
    )
    op.create_index(op.f('ix_lessons_share_slug'), 'lessons', ['share_slug'], unique=True)
    op.create_index('idx_lessons_canonical', 'lessons', ['passage_canonical', 'translation'], unique=False)

    op.create_table(
        'plan_item_lessons',
        _id(),
        sa.Column('plan_item_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('plan_items.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('lesson_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('lessons.id', ondelete='CASCADE'), nullable=False),
        _ts('created_at', default_now=True),
    )
    op.create_index(op.f('ix_plan_item_lessons_lesson_id'), 'plan_item_lessons', ['lesson_id'], unique=False)

    op.create_table(
        'progress',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lesson_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('lessons.id', ondelete='CASCADE'), nullable=False),
        _ts('completed_at'),
        sa.Column('quiz_score', sa.Integer(), nullable=True),
        sa.Column('time_spent_sec', sa.Integer(), nullable=True),
        _ts('created_at', default_now=True),
        sa.UniqueConstraint('user_id', 'lesson_id', name='uq_progress_user_lesson'),
    )
    op.create_index(op.f('ix_progress_user_id'), 'progress', ['user_id'], unique=False)

    op.create_table(
        'nudges',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        _ts('last_shown_at'),
        _ts('created_at', default_now=True),
    )
    op.create_index(op.f('ix_nudges_user_id'), 'nudges', ['user_id'], unique=False)

    op.create_table(
        'plan_shares',
        _id(),
        sa.Column('plan_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('share_token', sa.String(64), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        _ts('expires_at'),
        sa.Column('use_count', sa.Integer(), nullable=False, server_default='0'),
        _ts('created_at', default_now=True),
    )
    op.create_index(op.f('ix_plan_shares_plan_id'), 'plan_shares', ['plan_id'], unique=False)
    op.create_index(op.f('ix_plan_shares_share_token'), 'plan_shares', ['share_token'], unique=True)

    op.create_table(
        'user_plan_enrollments',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('plans.id', ondelete='CASCADE'), nullable=False),
        _ts('enrolled_at', default_now=True),
        sa.Column('custom_start_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('user_id', 'plan_id', name='uq_enrollment_user_plan'),
    )

    op.create_table(
        'spiritual_guidance',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('situation_text', sa.Text(), nullable=False),
        _jsonb('passages'),
        _jsonb('guidance_content'),
        _ts('created_at', default_now=True),
        _ts('updated_at', default_now=True),
    )
    op.create_index('idx_guidance_user_created', 'spiritual_guidance', ['user_id', 'created_at'], unique=False)

    op.create_table(
        'email_queue',
        _id(),
        sa.Column('email_type', sa.String(50), nullable=False),
        sa.Column('recipient_email', sa.String(255), nullable=False),
        sa.Column('recipient_user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _jsonb('template_data'),
        sa.Column('sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts('sent_at'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        _ts('created_at', default_now=True),
    )
    op.create_index('idx_email_queue_pending', 'email_queue', ['sent', 'attempts', 'created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_email_queue_pending', table_name='email_queue')
    op.drop_table('email_queue')
    op.drop_index('idx_guidance_user_created', table_name='spiritual_guidance')
    op.drop_table('spiritual_guidance')
    op.drop_table('user_plan_enrollments')
    op.drop_index(op.f('ix_plan_shares_share_token'), table_name='plan_shares')
    op.drop_index(op.f('ix_plan_shares_plan_id'), table_name='plan_shares')
    op.drop_table('plan_shares')
    op.drop_index(op.f('ix_nudges_user_id'), table_name='nudges')
    op.drop_table('nudges')
    op.drop_index(op.f('ix_progress_user_id'), table_name='progress')
    op.drop_table('progress')
    op.drop_index(op.f('ix_plan_item_lessons_lesson_id'), table_name='plan_item_lessons')
    op.drop_table('plan_item_lessons')
    op.drop_index('idx_lessons_canonical', table_name='lessons')
    op.drop_index(op.f('ix_lessons_share_slug'), table_name='lessons')
    op.drop_table('lessons')
    op.drop_index('idx_plan_items_plan_index', table_name='plan_items')
    op.drop_table('plan_items')
    op.drop_index('idx_plans_public_created', table_name='plans')
    op.drop_index(op.f('ix_plans_user_id'), table_name='plans')
    op.drop_table('plans')
    op.drop_index('idx_auth_tokens_user_purpose', table_name='auth_tokens')
    op.drop_table('auth_tokens')
    op.drop_index(op.f('ix_users_referred_by_user_id'), table_name='users')
    op.drop_index(op.f('ix_users_referral_code'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
