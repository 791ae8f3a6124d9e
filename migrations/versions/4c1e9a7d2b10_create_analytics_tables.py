"""create analytics pipeline tables

Revision ID: 4c1e9a7d2b10
Revises:
Create Date: 2026-10-19 09:12:41.118204

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '4c1e9a7d2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Raw sources
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('last_login_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('country_code', sa.String(length=2)),
        sa.Column('region', sa.String()),
    )
    op.create_index('idx_users_created_at', 'users', ['created_at'])
    op.create_index('idx_users_last_login_at', 'users', ['last_login_at'])
    op.create_index('idx_users_updated_at', 'users', ['updated_at'])

    op.create_table(
        'videos',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('likes_count', sa.BIGINT()),
        sa.Column('comments_count', sa.BIGINT()),
        sa.Column('shares_count', sa.BIGINT()),
        sa.Column('privacy', sa.String()),
        sa.Column('hls_url', sa.Text()),
        sa.Column('storage_public_id', sa.Text()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True)),
    )
    op.create_index('idx_videos_status_created', 'videos', ['status', 'created_at'])
    op.create_index('idx_videos_updated_at', 'videos', ['updated_at'])

    op.create_table(
        'video_watch_events',
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('video_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String()),
        sa.Column('watch_duration_seconds', sa.Float(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('idx_watch_events_created_at', 'video_watch_events', ['created_at'])

    op.create_table(
        'api_call_metrics',
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('function_name', sa.String(), nullable=False),
        sa.Column('duration_ms', sa.Float(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('timestamp', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('idx_api_call_metrics_timestamp', 'api_call_metrics', ['timestamp'])

    # Derived outputs
    op.create_table(
        'analytics',
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('period', sa.String(), nullable=False),
        sa.Column('source', sa.String(), nullable=False),
        sa.Column('metrics', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('snapshot_date', sa.TIMESTAMP(timezone=True)),
        sa.Column('window_start', sa.TIMESTAMP(timezone=True)),
        sa.Column('window_end', sa.TIMESTAMP(timezone=True)),
    )
    op.create_index('idx_analytics_type_created', 'analytics', ['type', 'created_at'])

    op.create_table(
        'trending_videos',
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('video_id', sa.String(), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('rank', sa.Integer(), nullable=False),
        sa.Column('calculated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('cache_warmed_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('cache_warming_failed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('cache_warming_error', sa.Text()),
    )
    op.create_index('idx_trending_videos_rank', 'trending_videos', ['rank'])

    op.create_table(
        'admin_alerts',
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('severity', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('threshold', sa.Float(), nullable=False),
        sa.Column('current_value', sa.Float(), nullable=False),
        sa.Column('acknowledged', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('idx_admin_alerts_created_at', 'admin_alerts', ['created_at'])


def downgrade() -> None:
    for index, table in (
        ('idx_admin_alerts_created_at', 'admin_alerts'),
        ('idx_trending_videos_rank', 'trending_videos'),
        ('idx_analytics_type_created', 'analytics'),
        ('idx_api_call_metrics_timestamp', 'api_call_metrics'),
        ('idx_watch_events_created_at', 'video_watch_events'),
        ('idx_videos_updated_at', 'videos'),
        ('idx_videos_status_created', 'videos'),
        ('idx_users_updated_at', 'users'),
        ('idx_users_last_login_at', 'users'),
        ('idx_users_created_at', 'users'),
    ):
        op.drop_index(index, table_name=table)

    for table in ('admin_alerts', 'trending_videos', 'analytics',
                  'api_call_metrics', 'video_watch_events', 'videos', 'users'):
        op.drop_table(table)
