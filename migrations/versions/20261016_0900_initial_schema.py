"""Initial expense workflow schema

Revision ID: 20261016_0900
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20261016_0900'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


EXPENSE_STATUSES = ('DRAFT', 'SUBMITTED', 'APPROVED', 'REJECTED')
USER_ROLES = ('EMPLOYEE', 'MANAGER', 'ADMIN')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column(
            'role',
            sa.Enum(*USER_ROLES, name='user_role_enum', create_constraint=True),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'expense_categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=False),
        sa.Column('color', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'expense_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('creator_id', sa.Uuid(), nullable=False),
        sa.Column(
            'creator_role',
            sa.Enum(*USER_ROLES, name='creator_role_enum', create_constraint=True),
            nullable=False,
        ),
        sa.Column('category_id', sa.Uuid(), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=1000), nullable=False),
        sa.Column('amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('expense_date', sa.DateTime(), nullable=False),
        sa.Column(
            'status',
            sa.Enum(
                *EXPENSE_STATUSES,
                name='expense_status_enum',
                create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('processed_by', sa.Uuid(), nullable=True),
        sa.Column('rejection_reason', sa.String(length=500), nullable=True),
        sa.Column('attachment_urls', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['expense_categories.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_expense_requests_creator_id', 'expense_requests', ['creator_id'])
    op.create_index('ix_expense_requests_category_id', 'expense_requests', ['category_id'])
    op.create_index('ix_expense_requests_expense_date', 'expense_requests', ['expense_date'])
    op.create_index('ix_expense_requests_status', 'expense_requests', ['status'])
    op.create_index('ix_expense_requests_created_at', 'expense_requests', ['created_at'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('external_id', sa.Uuid(), nullable=False),
        sa.Column('expense_request_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column(
            'previous_status',
            sa.Enum(*EXPENSE_STATUSES, name='audit_previous_status_enum'),
            nullable=True,
        ),
        sa.Column(
            'new_status',
            sa.Enum(*EXPENSE_STATUSES, name='audit_new_status_enum'),
            nullable=True,
        ),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('external_id'),
    )
    op.create_index('ix_audit_logs_expense_request_id', 'audit_logs', ['expense_request_id'])
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])

    op.create_table(
        'expense_comments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('expense_request_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('user_name', sa.String(length=200), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_expense_comments_expense_request_id',
        'expense_comments',
        ['expense_request_id'],
    )

    op.create_table(
        'budgets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=1000), nullable=True),
        sa.Column('amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('category_id', sa.Uuid(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ['category_id'], ['expense_categories.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_budgets_user_id', 'budgets', ['user_id'])
    op.create_index('ix_budgets_category_id', 'budgets', ['category_id'])
    op.create_index(
        'ix_budgets_active_range', 'budgets', ['is_active', 'start_date', 'end_date']
    )


def downgrade() -> None:
    op.drop_table('budgets')
    op.drop_table('expense_comments')
    op.drop_table('audit_logs')
    op.drop_table('expense_requests')
    op.drop_table('expense_categories')
    op.drop_table('users')
