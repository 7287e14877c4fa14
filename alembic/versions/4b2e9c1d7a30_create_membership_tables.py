"""create_membership_tables

Revision ID: 4b2e9c1d7a30
Revises:
Create Date: 2026-10-17 10:12:41.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b2e9c1d7a30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

group_visibility = sa.Enum('PUBLIC', 'PRIVATE', name='group_visibility')
membership_status = sa.Enum('ACTIVE', name='membership_status')
request_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='request_status')


def upgrade() -> None:
    """Create users, groups, memberships, join_requests and invitations."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'groups',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('max_capacity', sa.Integer(), nullable=False),
        sa.Column('visibility', group_visibility, nullable=False),
        sa.Column('invite_code', sa.String(length=20), nullable=True),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('member_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.CheckConstraint(
            'max_capacity >= 2 AND max_capacity <= 1000',
            name='ck_groups_max_capacity_range',
        ),
        sa.CheckConstraint(
            'member_count >= 0 AND member_count <= max_capacity',
            name='ck_groups_member_count_within_capacity',
        ),
        sa.CheckConstraint(
            "(visibility = 'PRIVATE' AND invite_code IS NOT NULL) "
            "OR (visibility = 'PUBLIC' AND invite_code IS NULL)",
            name='ck_groups_invite_code_iff_private',
        ),
    )
    op.create_index('ix_groups_id', 'groups', ['id'])
    op.create_index('ix_groups_invite_code', 'groups', ['invite_code'], unique=True)
    op.create_index('ix_groups_owner_id', 'groups', ['owner_id'])
    op.create_index('ix_groups_visibility_created', 'groups', ['visibility', 'created_at'])

    op.create_table(
        'memberships',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('status', membership_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('user_id', 'group_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        # One active group per user
        sa.UniqueConstraint('user_id', name='uq_memberships_user'),
    )
    op.create_index('ix_memberships_group_id', 'memberships', ['group_id'])

    op.create_table(
        'join_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('status', request_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_join_requests_id', 'join_requests', ['id'])
    op.create_index(
        'ix_join_requests_group_status_created',
        'join_requests',
        ['group_id', 'status', 'created_at'],
    )
    op.create_index(
        'uq_join_requests_pending_pair',
        'join_requests',
        ['user_id', 'group_id'],
        unique=True,
        postgresql_where=sa.text("status = 'PENDING'"),
        sqlite_where=sa.text("status = 'PENDING'"),
    )

    op.create_table(
        'invitations',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('user_id', 'group_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
    )


def downgrade() -> None:
    """Drop all membership tables."""
    op.drop_table('invitations')
    op.drop_index('uq_join_requests_pending_pair', table_name='join_requests')
    op.drop_index('ix_join_requests_group_status_created', table_name='join_requests')
    op.drop_index('ix_join_requests_id', table_name='join_requests')
    op.drop_table('join_requests')
    op.drop_index('ix_memberships_group_id', table_name='memberships')
    op.drop_table('memberships')
    op.drop_index('ix_groups_visibility_created', table_name='groups')
    op.drop_index('ix_groups_owner_id', table_name='groups')
    op.drop_index('ix_groups_invite_code', table_name='groups')
    op.drop_index('ix_groups_id', table_name='groups')
    op.drop_table('groups')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    request_status.drop(bind, checkfirst=True)
    membership_status.drop(bind, checkfirst=True)
    group_visibility.drop(bind, checkfirst=True)
