"""create study schedule tables

Revision ID: 5b7d2e91c0a4
Revises:
Create Date: 2025-06-02 10:12:44.318022

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b7d2e91c0a4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SESSION_STATUS = sa.Enum(
    'SCHEDULED', 'IN_PROGRESS', 'COMPLETED', 'MISSED', 'CANCELLED', name='sessionstatus'
)
REMINDER_STATUS = sa.Enum('PENDING', 'SENT', 'FAILED', 'CANCELLED', name='reminderstatus')


def upgrade() -> None:
    # Catalogue rows are written by the content service; the scheduler only reads them.
    op.create_table(
        'courses',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('thumbnail', sa.String(length=512), nullable=True),
        sa.Column('skill_focus', sa.String(length=64), nullable=True),
    )
    op.create_table(
        'combos',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('target_band_range', sa.String(length=32), nullable=True),
    )
    op.create_table(
        'lessons',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('course_id', sa.String(length=64), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('lesson_type', sa.String(length=64), nullable=True),
    )
    op.create_table(
        'combo_courses',
        sa.Column('combo_id', sa.String(length=64), sa.ForeignKey('combos.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('course_id', sa.String(length=64), sa.ForeignKey('courses.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'study_sessions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('combo_id', sa.String(length=64), sa.ForeignKey('combos.id', ondelete='SET NULL'), nullable=True),
        sa.Column('course_id', sa.String(length=64), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('lesson_id', sa.String(length=64), sa.ForeignKey('lessons.id', ondelete='SET NULL'), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('study_goal', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', SESSION_STATUS, nullable=False),
        sa.Column('completion_percentage', sa.Integer(), nullable=False),
        sa.Column('reminder_enabled', sa.Boolean(), nullable=False),
        sa.Column('reminder_minutes_before', sa.Integer(), nullable=True),
        sa.Column('reminder_sent', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_study_sessions_user_id', 'study_sessions', ['user_id'])
    op.create_index('ix_study_sessions_user_date', 'study_sessions', ['user_id', 'scheduled_date'])

    op.create_table(
        'study_reminders',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('schedule_id', sa.String(length=36), sa.ForeignKey('study_sessions.id'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('scheduled_time', sa.DateTime(), nullable=False),
        sa.Column('status', REMINDER_STATUS, nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('delivery_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.String(length=512), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_study_reminders_user_id', 'study_reminders', ['user_id'])
    op.create_index('ix_study_reminders_schedule_id', 'study_reminders', ['schedule_id'])
    op.create_index('ix_study_reminders_status_time', 'study_reminders', ['status', 'scheduled_time'])

    op.create_table(
        'user_schedule_locks',
        sa.Column('user_id', sa.String(length=64), primary_key=True),
        sa.Column('acquired_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('user_schedule_locks')
    op.drop_index('ix_study_reminders_status_time', table_name='study_reminders')
    op.drop_index('ix_study_reminders_schedule_id', table_name='study_reminders')
    op.drop_index('ix_study_reminders_user_id', table_name='study_reminders')
    op.drop_table('study_reminders')
    op.drop_index('ix_study_sessions_user_date', table_name='study_sessions')
    op.drop_index('ix_study_sessions_user_id', table_name='study_sessions')
    op.drop_table('study_sessions')
    op.drop_table('combo_courses')
    op.drop_table('lessons')
    op.drop_table('combos')
    op.drop_table('courses')

    conn = op.get_bind()
    if conn.dialect.name == 'postgresql':
        REMINDER_STATUS.drop(conn, checkfirst=True)
        SESSION_STATUS.drop(conn, checkfirst=True)
