"""Initial pipeline schema.

Revision ID: 001_initial
Revises:
Create Date: 2026-09-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Games table
    op.create_table(
        'games',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('season', sa.Integer(), nullable=False),
        sa.Column('week', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('home_team', sa.String(64), nullable=False),
        sa.Column('away_team', sa.String(64), nullable=False),
        sa.Column('start_time_utc', sa.DateTime(timezone=True), nullable=False),
        sa.Column('venue', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('schedule_change', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('home_score', sa.Integer(), nullable=True),
        sa.Column('away_score', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_games_start_time', 'games', ['start_time_utc'])
    op.create_index('idx_games_status', 'games', ['status'])

    # Odds snapshots (append-only, one row per bookmaker market per fetch)
    op.create_table(
        'odds_snapshots',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('game_id', sa.String(64), sa.ForeignKey('games.id'), nullable=False),
        sa.Column('bookmaker', sa.String(50), nullable=False),
        sa.Column('market_type', sa.String(20), nullable=False),
        sa.Column('snapshot_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('odds_data', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_odds_game_time', 'odds_snapshots', ['game_id', 'snapshot_time'])
    op.create_index('idx_odds_game_book', 'odds_snapshots', ['game_id', 'bookmaker'])
    op.create_index('idx_odds_snapshot_time', 'odds_snapshots', ['snapshot_time'])

    # Signals (injury, weather)
    op.create_table(
        'signals',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('game_id', sa.String(64), sa.ForeignKey('games.id'), nullable=False),
        sa.Column('signal_type', sa.String(20), nullable=False),
        sa.Column('source', sa.String(50), nullable=False),
        sa.Column('content', postgresql.JSONB(), nullable=False),
        sa.Column('confidence', sa.Numeric(4, 3), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_signals_game_type_time', 'signals', ['game_id', 'signal_type', 'timestamp'])

    # Feature sets
    op.create_table(
        'features',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('game_id', sa.String(64), sa.ForeignKey('games.id'), nullable=False),
        sa.Column('feature_set', postgresql.JSONB(), nullable=False),
        sa.Column('computed_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_features_game_computed', 'features', ['game_id', 'computed_at'])

    # Predictions (latest per game and market)
    op.create_table(
        'predictions',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('game_id', sa.String(64), sa.ForeignKey('games.id'), nullable=False),
        sa.Column('market_type', sa.String(20), nullable=False),
        sa.Column('predicted_value', sa.Float(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('uncertainty_band', postgresql.JSONB(), nullable=False),
        sa.Column('model_probability', sa.Float(), nullable=True),
        sa.Column('implied_probability', sa.Float(), nullable=True),
        sa.Column('edge_vs_implied', sa.Float(), nullable=True),
        sa.Column('model_version', sa.String(20), nullable=False),
        sa.Column('provenance_hash', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('game_id', 'market_type', name='uq_predictions_game_market'),
    )

    # Evaluations (append-only)
    op.create_table(
        'evaluations',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('prediction_id', sa.BigInteger(), sa.ForeignKey('predictions.id'), nullable=True),
        sa.Column('game_id', sa.String(64), sa.ForeignKey('games.id'), nullable=False),
        sa.Column('market_type', sa.String(20), nullable=False),
        sa.Column('predicted_value', sa.Float(), nullable=False),
        sa.Column('actual_value', sa.Float(), nullable=False),
        sa.Column('absolute_error', sa.Float(), nullable=False),
        sa.Column('squared_error', sa.Float(), nullable=False),
        sa.Column('brier_score', sa.Float(), nullable=True),
        sa.Column('log_loss', sa.Float(), nullable=True),
        sa.Column('evaluated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_eval_game', 'evaluations', ['game_id'])
    op.create_index('idx_eval_prediction', 'evaluations', ['prediction_id'])
    op.create_index('idx_eval_market_time', 'evaluations', ['market_type', 'evaluated_at'])

    # Source registry
    op.create_table(
        'source_registry',
        sa.Column('source_type', sa.String(20), primary_key=True),
        sa.Column('source_name', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('consecutive_failures', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_success', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_failure', sa.DateTime(timezone=True), nullable=True),
    )
    op.bulk_insert(
        sa.table(
            'source_registry',
            sa.column('source_type', sa.String),
            sa.column('source_name', sa.String),
        ),
        [
            {'source_type': 'odds', 'source_name': 'The Odds API'},
            {'source_type': 'injury', 'source_name': 'ESPN'},
            {'source_type': 'weather', 'source_name': 'Open-Meteo'},
        ],
    )

    # Audit log
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('target', sa.String(100), nullable=False),
        sa.Column('meta', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_audit_action_time', 'audit_logs', ['action', 'created_at'])

    # Usage budgets (shared API request counters)
    op.create_table(
        'usage_budgets',
        sa.Column('budget_key', sa.String(50), primary_key=True),
        sa.Column('window_start', sa.DateTime(timezone=True), primary_key=True),
        sa.Column('used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table('usage_budgets')
    op.drop_table('audit_logs')
    op.drop_table('source_registry')
    op.drop_table('evaluations')
    op.drop_table('predictions')
    op.drop_table('features')
    op.drop_table('signals')
    op.drop_table('odds_snapshots')
    op.drop_table('games')
