"""Create room booking tables

Revision ID: 3f7b1c2d9e40
Revises:
Create Date: 2026-10-17

Tables:
- rooms: Bookable classrooms, unique per (building, number)
- booking_groups: One row per recurring request that produced several bookings
- bookings: Concrete dated, timed reservations
- notifications: Stored user notifications
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from room_booking.models.base import GUID, get_json_type


# revision identifiers, used by Alembic.
revision: str = '3f7b1c2d9e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column('id', GUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'rooms',
        sa.Column('name', sa.String(length=60), nullable=False),
        sa.Column('number', sa.String(length=20), nullable=False),
        sa.Column('building', sa.String(length=100), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('features', get_json_type(), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('building', 'number', name='uq_room_building_number'),
        sa.CheckConstraint('capacity >= 1', name='ck_room_capacity_positive'),
    )
    with op.batch_alter_table('rooms', schema=None) as batch_op:
        batch_op.create_index('idx_room_building', ['building'], unique=False)

    op.create_table(
        'booking_groups',
        sa.Column('room_id', GUID(), nullable=False),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('repeat_type', sa.String(length=20), nullable=False),
        sa.Column('repeat_end_date', sa.Date(), nullable=True),
        sa.Column('weekly_schedule', get_json_type(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('booking_groups', schema=None) as batch_op:
        batch_op.create_index('idx_booking_group_room', ['room_id'], unique=False)
        batch_op.create_index('idx_booking_group_owner', ['owner_id'], unique=False)

    op.create_table(
        'bookings',
        sa.Column('room_id', GUID(), nullable=False),
        sa.Column('group_id', GUID(), nullable=True),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id']),
        sa.ForeignKeyConstraint(['group_id'], ['booking_groups.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('end_time > start_time', name='ck_booking_time_order'),
    )
    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.create_index('idx_booking_room_date_status', ['room_id', 'date', 'status'], unique=False)
        batch_op.create_index('idx_booking_owner_status', ['owner_id', 'status'], unique=False)
        batch_op.create_index('idx_booking_group', ['group_id'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('recipient_id', sa.String(length=255), nullable=False),
        sa.Column('sender_id', sa.String(length=255), nullable=True),
        sa.Column('kind', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('related_booking_id', GUID(), nullable=True),
        sa.Column('related_group_id', GUID(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('notifications', schema=None) as batch_op:
        batch_op.create_index(
            'idx_notification_recipient_read',
            ['recipient_id', 'is_read', 'created_at'],
            unique=False,
        )


def downgrade() -> None:
    with op.batch_alter_table('notifications', schema=None) as batch_op:
        batch_op.drop_index('idx_notification_recipient_read')
    op.drop_table('notifications')

    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.drop_index('idx_booking_group')
        batch_op.drop_index('idx_booking_owner_status')
        batch_op.drop_index('idx_booking_room_date_status')
    op.drop_table('bookings')

    with op.batch_alter_table('booking_groups', schema=None) as batch_op:
        batch_op.drop_index('idx_booking_group_owner')
        batch_op.drop_index('idx_booking_group_room')
    op.drop_table('booking_groups')

    with op.batch_alter_table('rooms', schema=None) as batch_op:
        batch_op.drop_index('idx_room_building')
    op.drop_table('rooms')
