"""Initial tournament schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('wallet_address', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_wallet_address', 'users', ['wallet_address'], unique=True)

    op.create_table(
        'tournaments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('entry_fee', sa.String(64), nullable=False),
        sa.Column('duration', sa.String(8), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('reveal_time', sa.DateTime(), nullable=False),
        sa.Column('creator_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_tournaments_start_time', 'tournaments', ['start_time'])
    op.create_index('ix_tournaments_due', 'tournaments', ['status', 'reveal_time'])

    op.create_table(
        'tournament_joins',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('tournament_id', sa.Integer(), sa.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'tournament_id', name='unique_tournament_join'),
    )
    op.create_index('ix_tournament_joins_tournament_id', 'tournament_joins', ['tournament_id'])
    op.create_index('ix_tournament_joins_user_id', 'tournament_joins', ['user_id'])

    op.create_table(
        'predictions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('tournament_id', sa.Integer(), sa.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('asset_symbol', sa.String(32), nullable=False),
        sa.Column('predicted_direction', sa.String(8), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        # Duplicate picks are rejected here even if the service pre-check races
        sa.UniqueConstraint('user_id', 'tournament_id', 'asset_symbol', name='unique_prediction_per_asset'),
    )
    op.create_index('ix_predictions_tournament_id', 'predictions', ['tournament_id'])
    op.create_index('ix_predictions_user_id', 'predictions', ['user_id'])
    op.create_index('ix_predictions_created_at', 'predictions', ['created_at'])

    op.create_table(
        'scores',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('tournament_id', sa.Integer(), sa.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('rank', sa.Integer(), nullable=False),
        sa.Column('reward_amount', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'tournament_id', name='unique_score_per_user'),
    )
    op.create_index('ix_scores_tournament_id', 'scores', ['tournament_id'])
    op.create_index('ix_scores_user_id', 'scores', ['user_id'])
    op.create_index('ix_scores_leaderboard', 'scores', ['tournament_id', 'rank'])


def downgrade() -> None:
    op.drop_table('scores')
    op.drop_table('predictions')
    op.drop_table('tournament_joins')
    op.drop_table('tournaments')
    op.drop_index('ix_users_wallet_address', table_name='users')
    op.drop_table('users')
