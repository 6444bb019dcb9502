"""Baseline migration - users, projects, payment ledger, audit trail, alerts

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TS = sa.DateTime(timezone=True)
MONEY = sa.Numeric(14, 2)


def upgrade() -> None:
    """Create the Work Hub schema."""

    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('crm_id', sa.Integer(), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', TS, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', TS, nullable=False, server_default=sa.func.now()),
    )

    # ==========================================================================
    # Projects
    # ==========================================================================
    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('school', sa.String(255), nullable=False),
        sa.Column('contact_person', sa.String(255)),
        sa.Column('contact_number', sa.String(50)),
        sa.Column('place', sa.String(255)),
        sa.Column('district', sa.String(255)),
        sa.Column('region', sa.String(20)),
        sa.Column('project_name', sa.String(255)),
        sa.Column('parent_company', sa.String(255)),
        sa.Column('executive_remarks', sa.Text()),
        sa.Column('created_date', TS, nullable=False, server_default=sa.func.now()),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column(
            'created_by_user_id',
            sa.Integer(),
            sa.ForeignKey('users.id', ondelete='SET NULL'),
        ),
        sa.Column('current_stage', sa.String(50), nullable=False, server_default='LEAD'),
        sa.Column('previous_stage', sa.String(50)),
        sa.Column('stage_change_timestamp', TS),
        sa.Column('stage_changed_by', sa.String(255)),
        sa.Column('current_owner_role', sa.String(50), nullable=False, server_default='ROLE_EXECUTIVE'),
        sa.Column('is_locked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('project_value', MONEY),
        sa.Column('invoice_amount', MONEY),
        sa.Column('pending_delivery', sa.Text()),
        sa.Column('quotation_remarks', sa.Text()),
        sa.Column('expected_delivery_date', sa.Date()),
        sa.Column('sales_remarks', sa.Text()),
        sa.Column('sales_updated_timestamp', TS),
        sa.Column('payment_status', sa.String(20)),
        sa.Column('amount_received', MONEY),
        sa.Column('payment_date', sa.Date()),
        sa.Column('payment_remarks', sa.Text()),
        sa.Column('payment_proof_url', sa.String(1000)),
        sa.Column('accounts_updated_timestamp', TS),
        sa.Column('installation_status', sa.String(20)),
        sa.Column('installation_remarks', sa.Text()),
        sa.Column('completion_date', sa.Date()),
        sa.Column('installation_updated_timestamp', TS),
        sa.Column('last_updated_by', sa.String(255)),
        sa.Column('last_updated_at', TS, nullable=False, server_default=sa.func.now()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    )
    op.create_index('idx_projects_current_stage', 'projects', ['current_stage'])
    op.create_index('idx_projects_contact_number', 'projects', ['contact_number'])

    # ==========================================================================
    # Payment ledger (append only)
    # ==========================================================================
    op.create_table(
        'payment_transactions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'project_id',
            sa.Integer(),
            sa.ForeignKey('projects.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('amount_paid', MONEY, nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_proof_url', sa.String(1000)),
        sa.Column('remarks', sa.Text()),
        sa.Column('created_at', TS, nullable=False, server_default=sa.func.now()),
        sa.Column('created_by', sa.String(255), nullable=False),
    )
    op.create_index('ix_payment_transactions_project_id', 'payment_transactions', ['project_id'])

    # ==========================================================================
    # Audit trail (no FK, survives project deletion)
    # ==========================================================================
    op.create_table(
        'project_stage_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('from_stage', sa.String(50)),
        sa.Column('to_stage', sa.String(50), nullable=False),
        sa.Column('changed_by', sa.String(255), nullable=False),
        sa.Column('changed_by_role', sa.String(50)),
        sa.Column('remarks', sa.Text()),
        sa.Column('is_system_triggered', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('timestamp', TS, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_project_stage_history_project_id', 'project_stage_history', ['project_id'])

    op.create_table(
        'project_activity_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('action_type', sa.String(50), nullable=False),
        sa.Column('field_name', sa.String(100)),
        sa.Column('old_value', sa.Text()),
        sa.Column('new_value', sa.Text()),
        sa.Column('performed_by', sa.String(255), nullable=False),
        sa.Column('performed_by_role', sa.String(50)),
        sa.Column('remarks', sa.Text()),
        sa.Column('timestamp', TS, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_project_activity_logs_project_id', 'project_activity_logs', ['project_id'])

    # ==========================================================================
    # Alerts
    # ==========================================================================
    op.create_table(
        'project_alerts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'project_id',
            sa.Integer(),
            sa.ForeignKey('projects.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('alert_type', sa.String(50), nullable=False),
        sa.Column('severity', sa.String(20), nullable=False),
        sa.Column('message', sa.String(500), nullable=False),
        sa.Column('days_overdue', sa.Integer()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', TS, nullable=False, server_default=sa.func.now()),
        sa.Column('dismissed_at', TS),
        sa.Column('dismissed_by', sa.String(255)),
    )
    op.create_index(
        'idx_project_alerts_active_type',
        'project_alerts',
        ['project_id', 'alert_type', 'is_active'],
    )


def downgrade() -> None:
    op.drop_table('project_alerts')
    op.drop_table('project_activity_logs')
    op.drop_table('project_stage_history')
    op.drop_table('payment_transactions')
    op.drop_table('projects')
    op.drop_table('users')
