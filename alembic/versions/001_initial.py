"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create customers table
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('full_name', sa.String(255), nullable=False, default='Guest'),
        sa.Column('phone', sa.String(20)),
        sa.Column('email', sa.String(255)),
        sa.Column('is_subscribed', sa.Boolean(), nullable=False, default=False),
        sa.Column('subscription_code', sa.String(20), unique=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    # Create restaurant_tables table
    op.create_table(
        'restaurant_tables',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('capacity', sa.Integer(), nullable=False),
    )

    # Create opening_hours table
    op.create_table(
        'opening_hours',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('day_of_week', sa.Integer(), unique=True, nullable=False),
        sa.Column('open_time', sa.Time()),
        sa.Column('close_time', sa.Time()),
        sa.Column('closed', sa.Boolean(), nullable=False, default=False),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create date_overrides table
    op.create_table(
        'date_overrides',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('date', sa.Date(), unique=True, nullable=False),
        sa.Column('open_time', sa.Time()),
        sa.Column('close_time', sa.Time()),
        sa.Column('closed', sa.Boolean(), nullable=False, default=False),
        sa.Column('reason', sa.String(255)),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column(
            'table_id',
            sa.Integer(),
            sa.ForeignKey('restaurant_tables.id', ondelete='SET NULL'),
        ),
        sa.Column('start_time', sa.DateTime()),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('confirmation_code', sa.Integer(), unique=True, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, default='ACTIVE'),
        sa.Column('kind', sa.String(20), nullable=False, default='ADVANCE'),
        sa.Column('reminder_sent', sa.Boolean(), nullable=False, default=False),
        sa.Column('checked_in_at', sa.DateTime()),
        sa.Column('checked_out_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), nullable=False, default=sa.func.now()),
    )

    # Create bills table
    op.create_table(
        'bills',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'reservation_id',
            sa.Integer(),
            sa.ForeignKey('reservations.id'),
            unique=True,
            nullable=False,
        ),
        sa.Column('amount_before_discount', sa.Numeric(10, 2), nullable=False),
        sa.Column('final_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('paid', sa.Boolean(), nullable=False, default=False),
        sa.Column('paid_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    # Create stored report tables
    op.create_table(
        'time_report_entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('report_year', sa.Integer(), nullable=False),
        sa.Column('report_month', sa.Integer(), nullable=False),
        sa.Column('reservation_id', sa.Integer(), nullable=False),
        sa.Column('scheduled_at', sa.DateTime()),
        sa.Column('checked_in_at', sa.DateTime()),
        sa.Column('checked_out_at', sa.DateTime()),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(255)),
        sa.Column('is_subscriber', sa.Boolean(), nullable=False, default=False),
    )

    op.create_table(
        'subscriber_report_entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('report_year', sa.Integer(), nullable=False),
        sa.Column('report_month', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(255)),
        sa.Column('subscription_code', sa.String(20)),
        sa.Column('total_reservations', sa.Integer(), nullable=False, default=0),
        sa.Column('completed', sa.Integer(), nullable=False, default=0),
        sa.Column('canceled', sa.Integer(), nullable=False, default=0),
        sa.Column('waitlist_entries', sa.Integer(), nullable=False, default=0),
    )

    op.create_table(
        'monthly_report_runs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('report_year', sa.Integer(), nullable=False),
        sa.Column('report_month', sa.Integer(), nullable=False),
        sa.Column('generated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('report_year', 'report_month', name='uq_report_run_period'),
    )

    # Create indexes
    op.create_index('ix_customers_phone', 'customers', ['phone'])
    op.create_index('ix_customers_email', 'customers', ['email'])
    op.create_index('ix_reservations_status_start', 'reservations', ['status', 'start_time'])
    op.create_index('ix_reservations_customer_id', 'reservations', ['customer_id'])
    op.create_index('ix_time_report_period', 'time_report_entries', ['report_year', 'report_month'])
    op.create_index(
        'ix_subscriber_report_period',
        'subscriber_report_entries',
        ['report_year', 'report_month'],
    )


def downgrade() -> None:
    op.drop_table('monthly_report_runs')
    op.drop_table('subscriber_report_entries')
    op.drop_table('time_report_entries')
    op.drop_table('bills')
    op.drop_table('reservations')
    op.drop_table('date_overrides')
    op.drop_table('opening_hours')
    op.drop_table('restaurant_tables')
    op.drop_table('customers')
