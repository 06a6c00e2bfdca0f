"""create game_level catalogue

Revision ID: 3c9d1e7a2b40
Revises:
Create Date: 2026-09-02 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9d1e7a2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'game_level' in set(insp.get_table_names()):
        return

    op.create_table(
        'game_level',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_slug', sa.String(length=64), nullable=False),
        sa.Column('level_number', sa.Integer(), nullable=False),
        sa.Column('reflector_count', sa.Integer(), nullable=False),
        sa.Column('decoy_count', sa.Integer(), nullable=False),
        sa.Column('memorize_duration_ms', sa.Integer(), nullable=True),
        sa.Column('predict_duration_ms', sa.Integer(), nullable=True),
        sa.Column('total_trials', sa.Integer(), nullable=True),
        sa.Column('pass_threshold_percent', sa.Float(), nullable=True),
        sa.Column('reward_points', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_slug', 'level_number', name='uq_game_level_number'),
    )
    op.create_index('ix_game_level_game_slug', 'game_level', ['game_slug'])


def downgrade():
    op.drop_index('ix_game_level_game_slug', table_name='game_level')
    op.drop_table('game_level')
