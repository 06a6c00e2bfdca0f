"""add game_session, player_game_progress, daily_game_time

Revision ID: 7a41f0c9d2e3
Revises: 3c9d1e7a2b40
Create Date: 2026-09-09 16:40:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7a41f0c9d2e3'
down_revision = '3c9d1e7a2b40'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'game_session' not in existing_tables:
        op.create_table(
            'game_session',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('player_id', sa.Integer(), nullable=False),
            sa.Column('game_slug', sa.String(length=64), nullable=False),
            sa.Column('level_number', sa.Integer(), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('reward_earned', sa.Integer(), nullable=False),
            sa.Column('duration_seconds', sa.Integer(), nullable=False),
            sa.Column('rounds_completed', sa.Integer(), nullable=False),
            sa.Column('accuracy_percentage', sa.Integer(), nullable=False),
            sa.Column('is_perfect', sa.Boolean(), nullable=False),
            sa.Column('level_completed', sa.Boolean(), nullable=False),
            sa.Column('session_data', sa.Text(), nullable=True),
            sa.Column('played_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_game_session_player_id', 'game_session', ['player_id'])

    if 'player_game_progress' not in existing_tables:
        op.create_table(
            'player_game_progress',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('player_id', sa.Integer(), nullable=False),
            sa.Column('game_slug', sa.String(length=64), nullable=False),
            sa.Column('current_level', sa.Integer(), nullable=False),
            sa.Column('highest_level_completed', sa.Integer(), nullable=False),
            sa.Column('total_reward_earned', sa.Integer(), nullable=False),
            sa.Column('total_sessions', sa.Integer(), nullable=False),
            sa.Column('best_scores', sa.Text(), nullable=True),
            sa.Column('last_played_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('player_id', 'game_slug', name='uq_progress_player_game'),
        )
        op.create_index('ix_player_game_progress_player_id', 'player_game_progress', ['player_id'])

    if 'daily_game_time' not in existing_tables:
        op.create_table(
            'daily_game_time',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('player_id', sa.Integer(), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('minutes_played', sa.Integer(), nullable=False),
            sa.Column('sessions_count', sa.Integer(), nullable=False),
            sa.Column('games_played', sa.Text(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('player_id', 'date', name='uq_daily_player_date'),
        )
        op.create_index('ix_daily_game_time_player_id', 'daily_game_time', ['player_id'])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'daily_game_time' in existing_tables:
        op.drop_index('ix_daily_game_time_player_id', table_name='daily_game_time')
        op.drop_table('daily_game_time')
    if 'player_game_progress' in existing_tables:
        op.drop_index('ix_player_game_progress_player_id', table_name='player_game_progress')
        op.drop_table('player_game_progress')
    if 'game_session' in existing_tables:
        op.drop_index('ix_game_session_player_id', table_name='game_session')
        op.drop_table('game_session')
