"""initial_schema

Revision ID: 4c1d2e7a9b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1d2e7a9b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=False), server_default=sa.func.now(), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=False), server_default=sa.func.now(), nullable=False))
    return columns


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'requests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('current_step', sa.Integer(), nullable=False),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('plan_type', sa.String(), nullable=True),
        sa.Column('service_type', sa.String(), nullable=False),
        sa.Column('total_declared_value', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_estimated_grading_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('customer_notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_requests_user_id', 'requests', ['user_id'])
    op.create_index('ix_requests_status', 'requests', ['status'])
    op.create_index('ix_requests_country', 'requests', ['country'])

    op.create_table(
        'cards',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('card_name', sa.String(), nullable=False),
        sa.Column('declared_value', sa.Numeric(12, 2), nullable=False),
        sa.Column('estimated_grading_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('actual_grade', sa.String(), nullable=True),
        sa.Column('grading_fee', sa.Numeric(12, 2), nullable=True),
        sa.Column('condition_notes', sa.Text(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index('ix_cards_id', 'cards', ['id'])
    op.create_index('ix_cards_request_id', 'cards', ['request_id'])

    op.create_table(
        'progress_steps',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('step_number', sa.Integer(), nullable=False),
        sa.Column('step_name', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('updated_by', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=False), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('request_id', 'step_number', name='uq_progress_steps_request_step'),
    )
    op.create_index('ix_progress_steps_id', 'progress_steps', ['id'])
    op.create_index('ix_progress_steps_request_id', 'progress_steps', ['request_id'])

    op.create_table(
        'step_details',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('step_number', sa.Integer(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('request_id', 'step_number', name='uq_step_details_request_step'),
    )
    op.create_index('ix_step_details_id', 'step_details', ['id'])
    op.create_index('ix_step_details_request_id', 'step_details', ['request_id'])

    op.create_table(
        'progress_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('step_number', sa.Integer(), nullable=False),
        sa.Column('old_status', sa.String(), nullable=True),
        sa.Column('new_status', sa.String(), nullable=False),
        sa.Column('changed_by', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index('ix_progress_history_id', 'progress_history', ['id'])
    op.create_index('ix_progress_history_request_id', 'progress_history', ['request_id'])

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=True),
        sa.Column('sender', sa.String(), nullable=False),
        sa.Column('recipient', sa.String(), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index('ix_messages_id', 'messages', ['id'])
    op.create_index('ix_messages_request_id', 'messages', ['request_id'])
    op.create_index('ix_messages_recipient', 'messages', ['recipient'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('request_id', sa.String(36), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('payment_type', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('payment_date', sa.DateTime(timezone=False), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_payments_id', 'payments', ['id'])
    op.create_index('ix_payments_request_id', 'payments', ['request_id'])

    op.create_table(
        'approvals',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('approval_key', sa.String(64), nullable=False),
        sa.Column('customer_name', sa.String(), nullable=False),
        sa.Column('customer_email', sa.String(), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=False), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=False), nullable=True),
        sa.Column('customer_comment', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_approvals_id', 'approvals', ['id'])
    op.create_index('ix_approvals_approval_key', 'approvals', ['approval_key'], unique=True)
    op.create_index('ix_approvals_status', 'approvals', ['status'])

    op.create_table(
        'approval_cards',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('approval_id', sa.Integer(), sa.ForeignKey('approvals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('card_name', sa.String(), nullable=False),
        sa.Column('grade', sa.String(), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('customer_decision', sa.String(), nullable=True),
        sa.Column('customer_comment', sa.Text(), nullable=True),
    )
    op.create_index('ix_approval_cards_id', 'approval_cards', ['id'])
    op.create_index('ix_approval_cards_approval_id', 'approval_cards', ['approval_id'])

    op.create_table(
        'admin_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('admin_user', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('target_id', sa.String(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index('ix_admin_logs_id', 'admin_logs', ['id'])
    op.create_index('ix_admin_logs_action', 'admin_logs', ['action'])
    op.create_index('ix_admin_logs_target_id', 'admin_logs', ['target_id'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'admin_logs',
        'approval_cards',
        'approvals',
        'payments',
        'messages',
        'progress_history',
        'step_details',
        'progress_steps',
        'cards',
        'requests',
        'users',
    ):
        op.drop_table(table)
