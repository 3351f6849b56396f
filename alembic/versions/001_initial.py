"""initial schema: users, organizers, events, bookings

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

ENUMS = {
    'attendee_type': ('student', 'professional', 'other'),
    'organization_type': ('educational', 'tech-company', 'non-profit', 'community', 'individual'),
    'event_type': ('workshop', 'hackathon', 'seminar', 'bootcamp'),
    'entry_type': ('free', 'paid'),
    'event_mode': ('online', 'offline', 'hybrid'),
    'event_status': ('draft', 'upcoming', 'ongoing', 'completed', 'canceled'),
    'payment_status': ('pending', 'completed', 'failed'),
    'booking_status': ('pending', 'confirmed', 'cancelled'),
    'attendance_status': ('present', 'absent', 'not_marked'),
}


def _enum(name: str) -> postgresql.ENUM:
    # Types are created once up front; attendee_type is shared by two tables
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('attendee_type', _enum('attendee_type'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_full_name', 'users', ['full_name'])
    op.create_index('ix_users_is_active', 'users', ['is_active'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])
    op.create_index('idx_user_active_created', 'users', ['is_active', 'created_at'])

    op.create_table(
        'organizers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organization_name', sa.String(length=200), nullable=False),
        sa.Column('organization_type', _enum('organization_type'), nullable=False),
        sa.Column('website', sa.String(length=500), nullable=True),
        sa.Column('contact_person', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_organizers_id', 'organizers', ['id'])
    op.create_index('ix_organizers_email', 'organizers', ['email'], unique=True)

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organizer_id', sa.Integer(), sa.ForeignKey('organizers.id'), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_type', _enum('event_type'), nullable=True),
        sa.Column('banner_image_url', sa.String(length=500), nullable=True),
        sa.Column('start_date_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('registration_deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=False),
        sa.Column('entry_type', _enum('entry_type'), nullable=False),
        sa.Column('ticket_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('mode', _enum('event_mode'), nullable=False),
        sa.Column('venue', sa.String(length=300), nullable=True),
        sa.Column('streaming_link', sa.String(length=500), nullable=True),
        sa.Column('status', _enum('event_status'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_events_id', 'events', ['id'])
    op.create_index('ix_events_organizer_id', 'events', ['organizer_id'])
    op.create_index('ix_events_title', 'events', ['title'])
    op.create_index('ix_events_start_date_time', 'events', ['start_date_time'])
    op.create_index('ix_events_status', 'events', ['status'])
    op.create_index('idx_event_status_start', 'events', ['status', 'start_date_time'])
    op.create_index('idx_event_organizer_start', 'events', ['organizer_id', 'start_date_time'])

    op.create_table(
        'user_registered_events',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_user_registered_events_event_id', 'user_registered_events', ['event_id'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('ticket_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('attendee_type', _enum('attendee_type'), nullable=False),
        sa.Column('ticket_count', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_status', _enum('payment_status'), nullable=False),
        sa.Column('booking_status', _enum('booking_status'), nullable=False),
        sa.Column('attendance_status', _enum('attendance_status'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_bookings_id', 'bookings', ['id'])
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])
    op.create_index('ix_bookings_event_id', 'bookings', ['event_id'])
    op.create_index('ix_bookings_ticket_id', 'bookings', ['ticket_id'], unique=True)
    op.create_index('ix_bookings_booking_status', 'bookings', ['booking_status'])
    op.create_index('ix_bookings_created_at', 'bookings', ['created_at'])
    op.create_index('idx_booking_event_status', 'bookings', ['event_id', 'booking_status'])
    op.create_index('idx_booking_user_created', 'bookings', ['user_id', 'created_at'])

    op.create_table(
        'booking_participants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
    )
    op.create_index('ix_booking_participants_booking_id', 'booking_participants', ['booking_id'])


def downgrade() -> None:
    op.drop_table('booking_participants')
    op.drop_table('bookings')
    op.drop_table('user_registered_events')
    op.drop_table('events')
    op.drop_table('organizers')
    op.drop_table('users')

    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).drop(bind, checkfirst=True)
