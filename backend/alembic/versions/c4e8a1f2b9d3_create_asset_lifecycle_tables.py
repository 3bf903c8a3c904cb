"""create_asset_lifecycle_tables

Revision ID: c4e8a1f2b9d3
Revises:
Create Date: 2026-10-17 09:12:44.318205

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c4e8a1f2b9d3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='employee'),
        sa.Column('profile_image', sa.String(length=500), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_id', 'users', ['id'], unique=False)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Create organizations table (capacity counters live here)
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('logo', sa.String(length=500), nullable=True),
        sa.Column('admin_user_id', sa.Integer(), nullable=True),
        sa.Column('employee_limit', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('current_employee_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('subscription_tier', sa.String(length=100), nullable=False, server_default='basic'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['admin_user_id'], ['users.id']),
        sa.CheckConstraint(
            'current_employee_count >= 0 AND current_employee_count <= employee_limit',
            name='ck_organizations_employee_capacity'
        )
    )
    op.create_index('ix_organizations_id', 'organizations', ['id'], unique=False)
    op.create_index('ix_organizations_admin_user_id', 'organizations', ['admin_user_id'], unique=True)

    # Create employee_affiliations table
    op.create_table(
        'employee_affiliations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('is_current', sa.Boolean(), nullable=True),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['employee_id'], ['users.id']),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.UniqueConstraint('employee_id', 'organization_id', 'is_current', name='uq_employee_affiliations_active_pair')
    )
    op.create_index('ix_employee_affiliations_id', 'employee_affiliations', ['id'], unique=False)
    op.create_index('ix_employee_affiliations_employee_id', 'employee_affiliations', ['employee_id'], unique=False)
    op.create_index('ix_employee_affiliations_organization_id', 'employee_affiliations', ['organization_id'], unique=False)

    # Create assets table
    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('asset_type', sa.String(length=20), nullable=False),
        sa.Column('total_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('available_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('owner_organization_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['owner_organization_id'], ['organizations.id']),
        sa.CheckConstraint(
            'available_quantity >= 0 AND available_quantity <= total_quantity',
            name='ck_assets_available_within_total'
        )
    )
    op.create_index('ix_assets_id', 'assets', ['id'], unique=False)
    op.create_index('ix_assets_owner_organization_id', 'assets', ['owner_organization_id'], unique=False)

    # Create asset_requests table
    op.create_table(
        'asset_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=True),
        sa.Column('asset_name', sa.String(length=255), nullable=False),
        sa.Column('asset_type', sa.String(length=20), nullable=False),
        sa.Column('requester_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['requester_id'], ['users.id']),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['resolved_by'], ['users.id'])
    )
    op.create_index('ix_asset_requests_id', 'asset_requests', ['id'], unique=False)
    op.create_index('ix_asset_requests_asset_id', 'asset_requests', ['asset_id'], unique=False)
    op.create_index('ix_asset_requests_requester_id', 'asset_requests', ['requester_id'], unique=False)
    op.create_index('ix_asset_requests_organization_id', 'asset_requests', ['organization_id'], unique=False)
    op.create_index('ix_asset_requests_status', 'asset_requests', ['status'], unique=False)

    # Create assigned_assets table
    op.create_table(
        'assigned_assets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=True),
        sa.Column('asset_id', sa.Integer(), nullable=True),
        sa.Column('asset_name', sa.String(length=255), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('unit_type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='held'),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('returned_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['request_id'], ['asset_requests.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['employee_id'], ['users.id']),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'])
    )
    op.create_index('ix_assigned_assets_id', 'assigned_assets', ['id'], unique=False)
    op.create_index('ix_assigned_assets_request_id', 'assigned_assets', ['request_id'], unique=True)
    op.create_index('ix_assigned_assets_asset_id', 'assigned_assets', ['asset_id'], unique=False)
    op.create_index('ix_assigned_assets_employee_id', 'assigned_assets', ['employee_id'], unique=False)
    op.create_index('ix_assigned_assets_organization_id', 'assigned_assets', ['organization_id'], unique=False)

    # Create subscription_packages table
    op.create_table(
        'subscription_packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('employee_limit', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_subscription_packages_id', 'subscription_packages', ['id'], unique=False)

    # Create payments table (transaction_id is the idempotency guard)
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.String(length=255), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('capacity_applied_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payments_id', 'payments', ['id'], unique=False)
    op.create_index('ix_payments_transaction_id', 'payments', ['transaction_id'], unique=True)
    op.create_index('ix_payments_organization_id', 'payments', ['organization_id'], unique=False)


def downgrade() -> None:
    # Drop tables in reverse order (respecting foreign key dependencies)
    op.drop_table('payments')
    op.drop_table('subscription_packages')
    op.drop_table('assigned_assets')
    op.drop_table('asset_requests')
    op.drop_table('assets')
    op.drop_table('employee_affiliations')
    op.drop_table('organizations')
    op.drop_table('users')
