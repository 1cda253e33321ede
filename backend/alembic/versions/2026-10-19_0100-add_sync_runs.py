"""add_sync_runs

Revision ID: 8e3b6d41c2f0
Revises: 5c1f0e2a9b7d
Create Date: 2026-10-19 01:00:00.000000+00:00

Stores the outcome of every sync cycle so the API can report on cycles
run by Celery workers.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '8e3b6d41c2f0'
down_revision = '5c1f0e2a9b7d'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'sync_runs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('status', sa.String(100), nullable=False, comment='success or failure'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('clips_fetched', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('clips_on_the_fly', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('clips_inserted', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_type', sa.String(100), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id', name='pk_sync_runs'),
    )
    op.create_index('ix_sync_runs_started_at', 'sync_runs', ['started_at'])


def downgrade() -> None:
    op.drop_index('ix_sync_runs_started_at', table_name='sync_runs')
    op.drop_table('sync_runs')
