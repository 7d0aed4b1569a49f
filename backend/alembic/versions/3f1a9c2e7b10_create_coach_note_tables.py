"""Create coach note tables

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2025-10-02 09:12:31.418206

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'coaching_sessions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('coach_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('idx_coaching_sessions_coach_id', 'coaching_sessions', ['coach_id'])
    op.create_index('idx_coaching_sessions_client_id', 'coaching_sessions', ['client_id'])

    op.create_table(
        'coach_notes',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('coach_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('session_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('audio_file_id', sa.String(length=100), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('tags', postgresql.ARRAY(sa.String(length=50)), nullable=False),
        sa.Column('is_encrypted', sa.Boolean(), nullable=False),
        sa.Column('encryption_version', sa.String(length=10), nullable=True),
        sa.Column('searchable_content', sa.Text(), nullable=False),
        sa.Column('edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('access_level', sa.String(length=20), nullable=False),
        sa.Column('allow_sharing', sa.Boolean(), nullable=False),
        sa.Column('last_accessed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('access_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('length(access_level) <= 20', name='ck_coach_notes_access_level_len'),
        sa.CheckConstraint('title IS NULL OR length(title) <= 200', name='ck_coach_notes_title_len'),
    )
    op.create_index('idx_coach_notes_coach_id', 'coach_notes', ['coach_id'])
    op.create_index('idx_coach_notes_session_id', 'coach_notes', ['session_id'])
    op.create_index('idx_coach_notes_access_level', 'coach_notes', ['access_level'])
    op.create_index('idx_coach_notes_created_at', 'coach_notes', ['created_at'])
    op.create_index('idx_coach_notes_coach_created', 'coach_notes', ['coach_id', 'created_at'])
    op.create_index('idx_coach_notes_last_accessed', 'coach_notes', ['last_accessed_at'])

    op.create_table(
        'note_shares',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'note_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('coach_notes.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('shared_by_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('shared_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reason', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('note_id', 'user_id', name='uq_note_shares_note_user'),
        sa.CheckConstraint('reason IS NULL OR length(reason) <= 500', name='ck_note_shares_reason_len'),
    )
    op.create_index('idx_note_shares_note_id', 'note_shares', ['note_id'])
    op.create_index('idx_note_shares_user_id', 'note_shares', ['user_id'])

    # no foreign key on note_id: entries outlive the note
    op.create_table(
        'note_audit_entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('note_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(length=20), nullable=False),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('actor_role', sa.String(length=20), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
    )
    op.create_index('idx_note_audit_note_id', 'note_audit_entries', ['note_id'])
    op.create_index('idx_note_audit_note_ts', 'note_audit_entries', ['note_id', 'timestamp'])
    op.create_index('idx_note_audit_actor_id', 'note_audit_entries', ['actor_id'])
    op.create_index('idx_note_audit_action', 'note_audit_entries', ['action'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('note_audit_entries')
    op.drop_table('note_shares')
    op.drop_table('coach_notes')
    op.drop_table('coaching_sessions')
