"""
Initial schema: users, craftsman profiles, services, bookings, notifications,
payments and reviews.

Revision ID: 20261001_initial_schema
Revises:
Create Date: 2026-10-01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from typing import Union

# revision identifiers, used by Alembic.
revision: str = '20261001_initial_schema'
down_revision: Union[str, None] = None
branch_labels = None
depends_on = None

USER_ROLES = ('CUSTOMER', 'CRAFTSMAN', 'ADMIN')
BOOKING_STATUSES = ('PENDING', 'CONFIRMED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED')
NOTIFICATION_TYPES = (
    'BOOKING_REQUEST',
    'BOOKING_CONFIRMED',
    'BOOKING_CANCELLED',
    'BOOKING_COMPLETED',
    'REVIEW_RECEIVED',
    'PAYMENT_CONFIRMED',
    'PAYMENT_RECEIVED',
    'SYSTEM',
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('role', sa.Enum(*USER_ROLES, name='userrole'), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_blocked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('profile_image', sa.String(), nullable=True),
        sa.Column('address', sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'craftsman_profiles',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('profession', sa.String(), nullable=False, server_default=''),
        sa.Column('experience', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('skills', sa.JSON(), nullable=False),
        sa.Column('price_range', sa.JSON(), nullable=False),
        sa.Column('availability', sa.JSON(), nullable=False),
        sa.Column('portfolio', sa.JSON(), nullable=False),
        sa.Column('rating', sa.Float(), nullable=False, server_default='0'),
        sa.Column('reviews_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_craftsman_profiles_user_id', 'craftsman_profiles', ['user_id'], unique=True)
    op.create_index('ix_craftsman_profiles_profession', 'craftsman_profiles', ['profession'])
    op.create_index('ix_craftsman_profiles_rating', 'craftsman_profiles', ['rating'])
    op.create_index('ix_craftsman_profiles_is_approved', 'craftsman_profiles', ['is_approved'])

    op.create_table(
        'services',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'craftsman_id',
            sa.Integer(),
            sa.ForeignKey('craftsman_profiles.user_id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_services_id', 'services', ['id'])
    op.create_index('ix_services_craftsman_id', 'services', ['craftsman_id'])
    op.create_index('ix_services_name', 'services', ['name'])
    op.create_index('ix_services_category', 'services', ['category'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('craftsman_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id', ondelete='SET NULL'), nullable=True),
        sa.Column('service_type', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('scheduled_date', sa.DateTime(), nullable=False),
        sa.Column('status', sa.Enum(*BOOKING_STATUSES, name='bookingstatus'), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('location', sa.JSON(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.CheckConstraint('price >= 0', name='ck_bookings_price_non_negative'),
    )
    op.create_index('ix_bookings_id', 'bookings', ['id'])
    op.create_index('ix_bookings_customer_id', 'bookings', ['customer_id'])
    op.create_index('ix_bookings_craftsman_id', 'bookings', ['craftsman_id'])
    op.create_index('ix_bookings_scheduled_date', 'bookings', ['scheduled_date'])
    op.create_index('ix_bookings_status', 'bookings', ['status'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.Enum(*NOTIFICATION_TYPES, name='notificationtype'), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('craftsman_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('provider', sa.Enum('STRIPE', 'PAYPAL', 'LOCAL', name='paymentprovider'), nullable=False),
        sa.Column('transaction_id', sa.String(), nullable=False, unique=True),
        sa.Column('status', sa.Enum('COMPLETED', 'FAILED', name='paymentstatus'), nullable=False),
        sa.Column('payment_method_id', sa.String(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_payments_id', 'payments', ['id'])
    op.create_index('ix_payments_booking_id', 'payments', ['booking_id'])
    op.create_index('ix_payments_customer_id', 'payments', ['customer_id'])
    op.create_index('ix_payments_craftsman_id', 'payments', ['craftsman_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('craftsman_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_id', 'reviews', ['id'])
    op.create_index('ix_reviews_craftsman_id', 'reviews', ['craftsman_id'])


def downgrade() -> None:
    op.drop_table('reviews')
    op.drop_table('payments')
    op.drop_table('notifications')
    op.drop_table('bookings')
    op.drop_table('services')
    op.drop_table('craftsman_profiles')
    op.drop_table('users')
    bind = op.get_bind()
    for enum_name in ('paymentstatus', 'paymentprovider', 'notificationtype', 'bookingstatus', 'userrole'):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
