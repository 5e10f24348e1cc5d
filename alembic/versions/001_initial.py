"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000

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
    # Create restaurant_tables table
    op.create_table(
        'restaurant_tables',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('number', sa.Integer(), unique=True, nullable=False),
        sa.Column('name', sa.String(100)),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('min_party_size', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('table_type', sa.String(20), nullable=False, server_default='STANDARD'),
        sa.Column('location_description', sa.String(255)),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('capacity > 0', name='check_capacity_positive'),
        sa.CheckConstraint('min_party_size >= 1', name='check_min_party_size_positive'),
        sa.CheckConstraint('min_party_size <= capacity', name='check_min_party_within_capacity'),
    )

    # Create reservation_config table (one row per policy version)
    op.create_table(
        'reservation_config',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('version', sa.Integer(), unique=True, nullable=False),
        sa.Column('reservation_duration_minutes', sa.Integer(), nullable=False, server_default='105'),
        sa.Column('grace_period_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('max_sitting_minutes', sa.Integer(), nullable=False, server_default='120'),
        sa.Column('time_slot_interval_minutes', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('lunch_buffer_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('dinner_buffer_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('advance_booking_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('same_day_booking_hours', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('max_party_size', sa.Integer(), nullable=False, server_default='12'),
        sa.Column('updated_by', sa.String(255)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('reservation_duration_minutes > 0 AND reservation_duration_minutes <= 480',
                           name='check_duration_reasonable'),
        sa.CheckConstraint('grace_period_minutes >= 0 AND grace_period_minutes <= 60',
                           name='check_grace_reasonable'),
        sa.CheckConstraint('max_sitting_minutes > 0 AND max_sitting_minutes <= 600',
                           name='check_sitting_reasonable'),
        sa.CheckConstraint('time_slot_interval_minutes > 0', name='check_interval_positive'),
    )

    # Create business_hours table
    op.create_table(
        'business_hours',
        sa.Column('day_of_week', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('is_open', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('open_time', sa.Time()),
        sa.Column('close_time', sa.Time()),
        sa.Column('lunch_start', sa.Time()),
        sa.Column('lunch_end', sa.Time()),
        sa.Column('dinner_start', sa.Time()),
        sa.Column('dinner_end', sa.Time()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='check_day_of_week'),
    )

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('table_id', sa.Integer(), sa.ForeignKey('restaurant_tables.id'), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_email', sa.String(255)),
        sa.Column('customer_phone', sa.String(20)),
        sa.Column('special_requests', sa.Text()),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('reservation_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='CONFIRMED'),
        sa.Column('config_version', sa.Integer(), nullable=False),
        sa.Column('service_period', sa.String(20), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('buffer_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('grace_period_minutes', sa.Integer(), nullable=False),
        sa.Column('max_sitting_minutes', sa.Integer(), nullable=False),
        sa.Column('on_time', sa.Boolean()),
        sa.Column('arrival_delay_minutes', sa.Integer()),
        sa.Column('actual_arrival_time', sa.DateTime()),
        sa.Column('actual_departure_time', sa.DateTime()),
        sa.Column('arrival_notes', sa.Text()),
        sa.Column('cancelled_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('party_size > 0', name='check_party_size_positive'),
        sa.CheckConstraint('duration_minutes > 0', name='check_duration_positive'),
    )

    # Create table_day_locks table
    op.create_table(
        'table_day_locks',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('table_id', sa.Integer(), sa.ForeignKey('restaurant_tables.id'), nullable=False),
        sa.Column('service_date', sa.Date(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('table_id', 'service_date', name='uq_table_day_lock'),
    )

    # Create indexes
    op.create_index('idx_reservations_table_date', 'reservations', ['table_id', 'reservation_date'])
    op.create_index('idx_reservations_date_status', 'reservations', ['reservation_date', 'status'])


def downgrade() -> None:
    op.drop_index('idx_reservations_date_status')
    op.drop_index('idx_reservations_table_date')

    op.drop_table('table_day_locks')
    op.drop_table('reservations')
    op.drop_table('business_hours')
    op.drop_table('reservation_config')
    op.drop_table('restaurant_tables')
