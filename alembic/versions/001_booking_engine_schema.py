"""Booking engine schema

Revision ID: 001_booking_engine_schema
Revises:
Create Date: 2026-10-19

Tables:
- Read-only from the engine: users, email_addresses, listings
- Engine-owned: listing_inventory, booking_requests, bookings
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_booking_engine_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all database tables."""

    # ===========================================
    # 1. USERS
    # ===========================================
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now(), onupdate=sa.func.now()),
    )

    op.create_table(
        'email_addresses',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email_address', sa.String(255), nullable=False, unique=True),
        sa.Column('is_primary', sa.Boolean, default=False),
        sa.Column('is_verified', sa.Boolean, default=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_email_addresses_user', 'email_addresses', ['user_id'])

    # ===========================================
    # 2. LISTINGS
    # ===========================================
    op.create_table(
        'listings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('price_per_night', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('check_in_time', sa.String(5), server_default='15:00'),
        sa.Column('check_out_time', sa.String(5), server_default='11:00'),
        sa.Column('time_zone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('maximum_guests', sa.Integer, server_default='2'),
        sa.Column('allow_pets', sa.Boolean, server_default=sa.false()),
        sa.Column('published', sa.Boolean, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now(), onupdate=sa.func.now()),
    )
    op.create_index('ix_listings_owner', 'listings', ['owner_id'])

    # ===========================================
    # 3. BOOKING REQUESTS
    # ===========================================
    op.create_table(
        'booking_requests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('listing_id', sa.String(36), sa.ForeignKey('listings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('guest_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('check_in', sa.Date, nullable=False),
        sa.Column('check_out', sa.Date, nullable=False),
        sa.Column('guests', sa.Integer, nullable=False, server_default='1'),
        sa.Column('pets', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('message', sa.Text, nullable=False, server_default=''),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column(
            'alteration_of', sa.String(36),
            sa.ForeignKey('booking_requests.id', ondelete='SET NULL'),
            nullable=True
        ),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.CheckConstraint('check_in < check_out', name='ck_booking_request_range'),
    )
    op.create_index('ix_booking_request_listing_status', 'booking_requests', ['listing_id', 'status'])
    op.create_index('ix_booking_request_guest', 'booking_requests', ['guest_id'])

    # ===========================================
    # 4. BOOKINGS
    # ===========================================
    op.create_table(
        'bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('guest_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('listing_id', sa.String(36), sa.ForeignKey('listings.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'booking_request_id', sa.String(36),
            sa.ForeignKey('booking_requests.id', ondelete='SET NULL'),
            nullable=True
        ),
        sa.Column('check_in', sa.Date, nullable=False),
        sa.Column('check_out', sa.Date, nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now(), onupdate=sa.func.now()),
    )
    op.create_index('ix_booking_listing_dates', 'bookings', ['listing_id', 'check_in', 'check_out'])
    op.create_index('ix_booking_request', 'bookings', ['booking_request_id'])
    op.create_index('ix_booking_guest', 'bookings', ['guest_id'])

    # ===========================================
    # 5. INVENTORY CALENDAR
    # ===========================================
    op.create_table(
        'listing_inventory',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('listing_id', sa.String(36), sa.ForeignKey('listings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('is_available', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('booking_id', sa.String(36), sa.ForeignKey('bookings.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.UniqueConstraint('listing_id', 'date', name='uq_inventory_listing_date'),
        # A claimed day is never available
        sa.CheckConstraint(
            'booking_id IS NULL OR is_available = false',
            name='ck_inventory_claimed_unavailable'
        ),
    )
    op.create_index('ix_inventory_available', 'listing_inventory', ['listing_id', 'is_available', 'date'])
    op.create_index('ix_inventory_booking', 'listing_inventory', ['booking_id'])


def downgrade() -> None:
    op.drop_table('listing_inventory')
    op.drop_table('bookings')
    op.drop_table('booking_requests')
    op.drop_table('listings')
    op.drop_table('email_addresses')
    op.drop_table('users')
