"""create users, auth, groups, transcripts and partnerships tables

Revision ID: 20261001core
Revises:
Create Date: 2026-10-01
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261001core'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(paranoid: bool = True):
    cols = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]
    if paranoid:
        cols.append(sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True))
    return cols


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('email_verified', sa.DateTime(timezone=True), nullable=True),
        sa.Column('roles', sa.JSON(), nullable=False),
        *_timestamps(paranoid=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('session_token', sa.String(), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expires', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_sessions_session_token', 'sessions', ['session_token'], unique=True)
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'])

    op.create_table(
        'verification_tokens',
        sa.Column('identifier', sa.String(), nullable=False),
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('expires', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('identifier', 'token', name='pk_verification_tokens'),
    )

    op.create_table(
        'partnerships',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('mentor_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('mentee_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_partnerships_mentor_id', 'partnerships', ['mentor_id'])
    op.create_index('ix_partnerships_mentee_id', 'partnerships', ['mentee_id'])
    op.create_index('ix_partnerships_deleted_at', 'partnerships', ['deleted_at'])

    op.create_table(
        'groups',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('meeting_link', sa.String(), nullable=True),
        sa.Column('partnership_id', sa.Uuid(), sa.ForeignKey('partnerships.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_groups_partnership_id', 'groups', ['partnership_id'])
    op.create_index('ix_groups_deleted_at', 'groups', ['deleted_at'])

    op.create_table(
        'group_users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('group_id', sa.Uuid(), sa.ForeignKey('groups.id'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_group_users_group_user', 'group_users', ['group_id', 'user_id'])
    op.create_index('ix_group_users_group_id', 'group_users', ['group_id'])
    op.create_index('ix_group_users_user_id', 'group_users', ['user_id'])
    op.create_index('ix_group_users_deleted_at', 'group_users', ['deleted_at'])

    op.create_table(
        'transcripts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('group_id', sa.Uuid(), sa.ForeignKey('groups.id'), nullable=False),
        sa.Column('transcript_id', sa.String(), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_transcripts_group_id', 'transcripts', ['group_id'])
    op.create_index('ix_transcripts_deleted_at', 'transcripts', ['deleted_at'])


def downgrade():
    op.drop_table('transcripts')
    op.drop_table('group_users')
    op.drop_table('groups')
    op.drop_table('partnerships')
    op.drop_table('verification_tokens')
    op.drop_table('sessions')
    op.drop_table('users')
