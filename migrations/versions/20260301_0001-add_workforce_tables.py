"""Add workforce tables synced from the reporting exports

Revision ID: 3c7a9e1f5b20
Revises:
Create Date: 2026-03-01 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7a9e1f5b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # =========================================================================
    # Companies (client summary)
    # =========================================================================
    op.create_table(
        'companies',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('partnership', sa.String(), nullable=True),
        sa.Column('model', sa.String(), nullable=True),
        sa.Column('launch_date', sa.Date(), nullable=True),
        sa.Column('eligible', sa.Integer(), nullable=True),
        sa.Column('adopted', sa.Integer(), nullable=True),
        sa.Column('active', sa.Integer(), nullable=True),
        sa.Column('transfers_in_period', sa.Integer(), nullable=True),
        sa.Column('total_transfer_amount', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_companies_name', 'companies', ['name'], unique=True)
    op.create_index('ix_companies_partnership', 'companies', ['partnership'])

    # =========================================================================
    # Employees (enrolled employees)
    # =========================================================================
    op.create_table(
        'employees',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('employee_code', sa.String(), nullable=True),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('company_name', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('paytype', sa.String(), nullable=True),
        sa.Column('paused', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('has_savings_acct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('save_balance', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('outstanding_balance', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('lifetime_total_transfers', sa.Integer(), nullable=True),
        sa.Column('lifetime_volume_usd', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('transfers_30d', sa.Integer(), nullable=True),
        sa.Column('volume_30d_usd', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('transfers_90d', sa.Integer(), nullable=True),
        sa.Column('volume_90d_usd', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_employees_employee_code', 'employees', ['employee_code'])
    op.create_index('ix_employees_full_name', 'employees', ['full_name'])
    op.create_index('ix_employees_company_name', 'employees', ['company_name'])

    # =========================================================================
    # Company admins (admin summary)
    # =========================================================================
    op.create_table(
        'company_admins',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('company_id', sa.String(), nullable=False),
        sa.Column('admin_email', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'admin_email', name='uq_company_admin_email')
    )
    op.create_index('ix_company_admins_company_id', 'company_admins', ['company_id'])


def downgrade() -> None:
    op.drop_index('ix_company_admins_company_id', table_name='company_admins')
    op.drop_table('company_admins')

    op.drop_index('ix_employees_company_name', table_name='employees')
    op.drop_index('ix_employees_full_name', table_name='employees')
    op.drop_index('ix_employees_employee_code', table_name='employees')
    op.drop_table('employees')

    op.drop_index('ix_companies_partnership', table_name='companies')
    op.drop_index('ix_companies_name', table_name='companies')
    op.drop_table('companies')
