"""initial schema: users, recordings, transcriptions, tags

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-01-01 00:01:00
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('settings', sa.JSON(), nullable=False),
        sa.Column('reset_token', sa.String(length=64), nullable=True),
        sa.Column('reset_token_expiry', sa.DateTime(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_reset_token', 'users', ['reset_token'])

    op.create_table(
        'recordings',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('duration_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('audio_data', sa.LargeBinary(), nullable=True),
        sa.Column('file_path', sa.String(length=512), nullable=True),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_recordings_user_id', 'recordings', ['user_id'])
    op.create_index('ix_recordings_recorded_at', 'recordings', ['recorded_at'])

    op.create_table(
        'transcriptions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('recording_id', sa.String(length=36), sa.ForeignKey('recordings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_transcriptions_recording_id', 'transcriptions', ['recording_id'])

    op.create_table(
        'tags',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_tags_name', 'tags', ['name'], unique=True)

    op.create_table(
        'recording_tags',
        sa.Column('recording_id', sa.String(length=36), sa.ForeignKey('recordings.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', sa.String(length=36), sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
    )


def downgrade() -> None:
    op.drop_table('recording_tags')
    op.drop_index('ix_tags_name', table_name='tags')
    op.drop_table('tags')
    op.drop_index('ix_transcriptions_recording_id', table_name='transcriptions')
    op.drop_table('transcriptions')
    op.drop_index('ix_recordings_recorded_at', table_name='recordings')
    op.drop_index('ix_recordings_user_id', table_name='recordings')
    op.drop_table('recordings')
    op.drop_index('ix_users_reset_token', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
