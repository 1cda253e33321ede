"""create_clip_tables

Revision ID: 5c1f0e2a9b7d
Revises:
Create Date: 2026-10-19 00:00:00.000000+00:00

Creates clips, clip_statuses and crm_tokens.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c1f0e2a9b7d'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the clip sync tables."""
    op.create_table(
        'clips',
        sa.Column('clip_id', sa.String(255), nullable=False, comment='Zoom clip identifier'),
        sa.Column('title', sa.Text(), nullable=True, comment='Clip title as first ingested'),
        sa.Column('download_url', sa.String(2048), nullable=True, comment='Download URL as first ingested'),
        sa.Column('recording_meeting_id', sa.String(255), nullable=True,
                  comment='Scheduled meeting recording this clip belongs to, if any'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('now()'), comment='Timestamp of first insert (UTC)'),
        sa.PrimaryKeyConstraint('clip_id', name='pk_clips'),
    )
    # Listing sorts newest first
    op.create_index('ix_clips_created_at', 'clips', ['created_at'])

    op.create_table(
        'clip_statuses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('clip_id', sa.String(255), nullable=False, comment='Foreign key to clips table'),
        sa.Column('is_processed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('knowledge_article_id', sa.String(255), nullable=True,
                  comment='Identifier of the derived CRM knowledge article'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id', name='pk_clip_statuses'),
        sa.ForeignKeyConstraint(
            ['clip_id'], ['clips.clip_id'],
            name='fk_clip_statuses_clip_id_clips',
            ondelete='CASCADE',
        ),
        sa.UniqueConstraint('clip_id', name='uq_clip_statuses_clip_id'),
    )

    op.create_table(
        'crm_tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('provider', sa.String(100), nullable=False, comment='CRM provider name (e.g. salesforce)'),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('instance_url', sa.String(2048), nullable=True),
        sa.Column('token_type', sa.String(100), nullable=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id', name='pk_crm_tokens'),
        sa.UniqueConstraint('provider', name='uq_crm_tokens_provider'),
    )


def downgrade() -> None:
    """Drop the clip sync tables."""
    op.drop_table('crm_tokens')
    op.drop_table('clip_statuses')
    op.drop_index('ix_clips_created_at', table_name='clips')
    op.drop_table('clips')
