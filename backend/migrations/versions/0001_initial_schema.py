"""initial workflow schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=128), nullable=False),
        sa.Column('full_name', sa.String(length=128), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='guest'),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.text('1')),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('payment_method', sa.String(length=64), nullable=True),
        sa.Column('credit_limit_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_customers_name', 'customers', ['name'])

    op.create_table('job_orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('po_number', sa.String(length=64), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('steel_type', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('width', sa.Float(), nullable=False),
        sa.Column('length', sa.Float(), nullable=False),
        sa.Column('thickness', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='normal'),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=True),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        sa.Column('special_instructions', sa.Text(), nullable=True),
        sa.Column('assigned_cutter_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('completed_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('quantity > 0', name='ck_job_orders_quantity_positive'),
        sa.CheckConstraint('width > 0 AND length > 0 AND thickness > 0', name='ck_job_orders_dimensions_positive'),
        sa.CheckConstraint('completed_quantity >= 0 AND completed_quantity <= quantity', name='ck_job_orders_completed_quantity'),
    )
    for col in ('po_number', 'customer_id', 'status', 'priority', 'assigned_cutter_id'):
        op.create_index(f'ix_job_orders_{col}', 'job_orders', [col])

    op.create_table('employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('name_en', sa.String(length=128), nullable=True),
        sa.Column('position', sa.String(length=128), nullable=False),
        sa.Column('position_en', sa.String(length=128), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('bank_account', sa.String(length=64), nullable=True),
        sa.Column('bank_name', sa.String(length=64), nullable=True),
        sa.Column('base_salary_cents', sa.Integer(), nullable=False),
        sa.Column('current_salary_cents', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_employees_employee_code', 'employees', ['employee_code'], unique=True)

    op.create_table('salary_adjustments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_salary_adjustments_employee_id', 'salary_adjustments', ['employee_id'])


def downgrade():
    op.drop_table('salary_adjustments')
    op.drop_table('employees')
    op.drop_table('job_orders')
    op.drop_table('customers')
    op.drop_table('users')
