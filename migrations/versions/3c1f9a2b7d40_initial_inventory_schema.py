"""initial inventory schema

Revision ID: 3c1f9a2b7d40
Revises:
Create Date: 2026-10-19 09:12:44.118305
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '3c1f9a2b7d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum(
    'super_admin', 'master_inventory_handler', 'stock_in_manager', 'stock_out_manager', 'attendance_manager',
    name='userrole'
)
transaction_type = sa.Enum('stock_in', 'stock_out', name='transactiontype')
alert_level = sa.Enum('low', 'critical', name='alertlevel')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('unit', sa.String(length=50), nullable=False),
        sa.Column('opening_stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('current_stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('current_stock >= 0', name='ck_products_current_stock_non_negative'),
        sa.CheckConstraint('opening_stock >= 0', name='ck_products_opening_stock_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_id', 'products', ['id'])
    op.create_index('ix_products_name', 'products', ['name'])

    op.create_table(
        'stock_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', transaction_type, nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('original_quantity', sa.Numeric(12, 3), nullable=True),
        sa.Column('original_unit', sa.String(length=50), nullable=True),
        sa.Column('previous_stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('new_stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('transaction_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('po_number', sa.String(length=100), nullable=True),
        sa.Column('so_number', sa.String(length=100), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('quantity > 0', name='ck_stock_transactions_quantity_positive'),
        sa.CheckConstraint('new_stock >= 0', name='ck_stock_transactions_new_stock_non_negative'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stock_transactions_id', 'stock_transactions', ['id'])
    op.create_index('ix_stock_transactions_product_id', 'stock_transactions', ['product_id'])
    op.create_index('ix_stock_transactions_user_id', 'stock_transactions', ['user_id'])
    op.create_index('ix_stock_transactions_transaction_date', 'stock_transactions', ['transaction_date'])

    op.create_table(
        'weekly_stock_plans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('planned_quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit', sa.String(length=50), nullable=False),
        sa.Column('week_start_date', sa.Date(), nullable=False),
        sa.Column('week_end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('planned_quantity > 0', name='ck_weekly_stock_plans_quantity_positive'),
        sa.CheckConstraint('week_start_date <= week_end_date', name='ck_weekly_stock_plans_date_range'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_weekly_stock_plans_id', 'weekly_stock_plans', ['id'])
    op.create_index('ix_weekly_stock_plans_product_id', 'weekly_stock_plans', ['product_id'])
    op.create_index('ix_weekly_stock_plans_week_start_date', 'weekly_stock_plans', ['week_start_date'])
    op.create_index('ix_weekly_stock_plans_week_end_date', 'weekly_stock_plans', ['week_end_date'])

    op.create_table(
        'low_stock_alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('weekly_plan_id', sa.Integer(), nullable=False),
        sa.Column('current_stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('planned_quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('alert_level', alert_level, nullable=False),
        sa.Column('is_resolved', sa.Boolean(), nullable=False),
        sa.Column('alert_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['weekly_plan_id'], ['weekly_stock_plans.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_low_stock_alerts_id', 'low_stock_alerts', ['id'])
    op.create_index('ix_low_stock_alerts_product_id', 'low_stock_alerts', ['product_id'])
    op.create_index('ix_low_stock_alerts_weekly_plan_id', 'low_stock_alerts', ['weekly_plan_id'])

    # At most one open alert per (product, plan)
    op.create_index(
        'uq_low_stock_alerts_open_per_plan',
        'low_stock_alerts',
        ['product_id', 'weekly_plan_id'],
        unique=True,
        postgresql_where=sa.text('is_resolved = false'),
        sqlite_where=sa.text('is_resolved = 0'),
    )


def downgrade() -> None:
    op.drop_index('uq_low_stock_alerts_open_per_plan', table_name='low_stock_alerts')
    op.drop_table('low_stock_alerts')
    op.drop_table('weekly_stock_plans')
    op.drop_table('stock_transactions')
    op.drop_table('products')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in (alert_level, transaction_type, user_role):
        enum.drop(bind, checkfirst=True)
