"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

reservation_status = sa.Enum(
    'PENDING', 'CONFIRMED', 'WAITLIST', 'SEATED', 'COMPLETED', 'CANCELLED', 'NO_SHOW', 'REMINDED',
    name='reservationstatus',
)
reservation_source = sa.Enum('WALK_IN', 'ONLINE', 'PHONE', name='reservationsource')
history_action = sa.Enum(
    'CREATED', 'UPDATED', 'STATUS_CHANGED', 'RESCHEDULED', 'TABLE_CHANGED',
    name='historyaction',
)
user_role = sa.Enum('SUPER_ADMIN', 'RESTAURANT_ADMIN', 'HOST', name='userrole')


def upgrade() -> None:
    # Create tenants table
    op.create_table(
        'tenants',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('timezone', sa.String(50), default='America/New_York'),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(as_uuid=True), sa.ForeignKey('tenants.id')),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('role', user_role, default='HOST'),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create dining_tables table
    op.create_table(
        'dining_tables',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('section', sa.String(100)),
        sa.Column('min_capacity', sa.Integer(), nullable=False, default=1),
        sa.Column('max_capacity', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
        sa.CheckConstraint('min_capacity <= max_capacity', name='ck_dining_tables_capacity'),
        sa.CheckConstraint('min_capacity >= 1', name='ck_dining_tables_min_capacity'),
    )

    # Create guests table
    op.create_table(
        'guests',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100)),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(20)),
        sa.Column('notes', sa.Text()),
        sa.Column('is_vip', sa.Boolean(), default=False),
        sa.Column('total_visits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_visit_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('table_id', sa.Uuid(as_uuid=True), sa.ForeignKey('dining_tables.id')),
        sa.Column('guest_id', sa.Uuid(as_uuid=True), sa.ForeignKey('guests.id')),
        sa.Column('guest_name', sa.String(255), nullable=False),
        sa.Column('guest_email', sa.String(255)),
        sa.Column('guest_phone', sa.String(20)),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False, server_default='90'),
        sa.Column('status', reservation_status, nullable=False, server_default='PENDING'),
        sa.Column('source', reservation_source, nullable=False, server_default='WALK_IN'),
        sa.Column('confirmation_code', sa.String(8), unique=True, nullable=False),
        sa.Column('special_requests', sa.Text()),
        sa.Column('dietary_notes', sa.Text()),
        sa.Column('celebration_note', sa.Text()),
        sa.Column('internal_notes', sa.Text()),
        sa.Column('is_vip', sa.Boolean(), default=False),
        sa.Column('confirmed_at', sa.DateTime()),
        sa.Column('confirmed_by', sa.Uuid(as_uuid=True)),
        sa.Column('seated_at', sa.DateTime()),
        sa.Column('completed_at', sa.DateTime()),
        sa.Column('cancelled_at', sa.DateTime()),
        sa.Column('cancel_reason', sa.Text()),
        sa.Column('no_show_at', sa.DateTime()),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.Uuid(as_uuid=True)),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # History outlives its reservation, so no foreign key
    op.create_table(
        'reservation_history',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('reservation_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('action', history_action, nullable=False),
        sa.Column('previous_value', sa.JSON()),
        sa.Column('new_value', sa.JSON()),
        sa.Column('changed_by', sa.Uuid(as_uuid=True)),
        sa.Column('notes', sa.Text()),
        sa.Column('changed_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # Create indexes
    op.create_index('ix_dining_tables_tenant_id', 'dining_tables', ['tenant_id'])
    op.create_index('ix_guests_tenant_id', 'guests', ['tenant_id'])
    op.create_index('ix_reservations_tenant_id', 'reservations', ['tenant_id'])
    op.create_index('ix_reservations_table_id', 'reservations', ['table_id'])
    op.create_index('ix_reservations_date', 'reservations', ['date'])
    op.create_index('ix_reservations_table_window', 'reservations', ['table_id', 'start_time', 'end_time'])
    op.create_index('ix_reservation_history_reservation_id', 'reservation_history', ['reservation_id'])


def downgrade() -> None:
    op.drop_table('reservation_history')
    op.drop_table('reservations')
    op.drop_table('guests')
    op.drop_table('dining_tables')
    op.drop_table('users')
    op.drop_table('tenants')
    for enum_type in (history_action, reservation_source, reservation_status, user_role):
        enum_type.drop(op.get_bind(), checkfirst=True)
