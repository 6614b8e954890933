"""create users, watchlist_items and feedbacks

Revision ID: 0001_create_core_tables
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_create_core_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('user', 'admin', name='user_role')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', user_role, nullable=False, server_default='user'),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('profile_pic', sa.Text(), nullable=False, server_default=''),
        sa.Column('email_otp', sa.Text(), nullable=True),
        sa.Column('email_otp_expires', sa.TIMESTAMP(), nullable=True),
        sa.Column('reset_password_token', sa.Text(), nullable=True),
        sa.Column('reset_password_expires', sa.TIMESTAMP(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.func.now()),
    )
    op.create_unique_constraint('uq_users_email', 'users', ['email'])
    op.create_index('ix_users_reset_password_token', 'users', ['reset_password_token'])

    op.create_table(
        'watchlist_items',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Uuid(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('movie_id', sa.Integer(), nullable=False),
        sa.Column('movie_data', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'movie_id', name='uq_watchlist_user_movie'),
    )
    op.create_index('ix_watchlist_items_user_id', 'watchlist_items', ['user_id'])

    op.create_table(
        'feedbacks',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_feedbacks_email', 'feedbacks', ['email'])


def downgrade() -> None:
    op.drop_index('ix_feedbacks_email', table_name='feedbacks')
    op.drop_table('feedbacks')
    op.drop_index('ix_watchlist_items_user_id', table_name='watchlist_items')
    op.drop_table('watchlist_items')
    op.drop_index('ix_users_reset_password_token', table_name='users')
    op.drop_constraint('uq_users_email', 'users', type_='unique')
    op.drop_table('users')
    user_role.drop(op.get_bind(), checkfirst=True)
