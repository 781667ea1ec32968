"""Create staking schema.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.DECIMAL(18, 8)
RATE = sa.DECIMAL(10, 6)
PERCENT = sa.DECIMAL(6, 3)


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()'))
        )
    return columns


def upgrade() -> None:
    """Create users, stakes, ledger, bonus, pool and tree tables."""

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('referrer_id', sa.Integer(), nullable=True),
        sa.Column('rank', sa.String(20), nullable=False, server_default='Bronze'),
        sa.Column('current_program', sa.String(4), nullable=False, server_default='I'),
        sa.Column('principal_balance', MONEY, nullable=False, server_default='0'),
        sa.Column('income_balance', MONEY, nullable=False, server_default='0'),
        sa.Column('income_total_earned', MONEY, nullable=False, server_default='0'),
        sa.Column('income_total_withdrawn', MONEY, nullable=False, server_default='0'),
        sa.Column('income_last_withdrawal', sa.DateTime(timezone=True), nullable=True),
        sa.Column('enhanced_roi_qualified', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('enhanced_roi_qualified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('principal_balance >= 0', name='check_user_principal_non_negative'),
        sa.CheckConstraint('income_balance >= 0', name='check_user_income_non_negative'),
        sa.CheckConstraint('income_total_earned >= 0', name='check_user_total_earned_non_negative'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_referrer_id', 'users', ['referrer_id'])

    op.create_table(
        'stakes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('program', sa.String(4), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('base_roi_rate', RATE, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('last_roi_paid_on', sa.Date(), nullable=True),
        sa.Column('total_roi_earned', MONEY, nullable=False, server_default='0'),
        sa.Column('enhanced_qualified', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('enhanced_qualified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('compounding_active', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('compounding_days_without_withdrawal', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('compounding_rate', RATE, nullable=False),
        sa.Column('compounding_started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('compounding_counted_on', sa.Date(), nullable=True),
        sa.Column('compounding_checked_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount > 0', name='check_stake_amount_positive'),
        sa.CheckConstraint('total_roi_earned >= 0', name='check_stake_roi_earned_non_negative'),
        sa.CheckConstraint(
            'compounding_days_without_withdrawal >= 0',
            name='check_stake_compounding_days_non_negative',
        ),
    )
    op.create_index('ix_stakes_user_id', 'stakes', ['user_id'])
    op.create_index('ix_stakes_is_active', 'stakes', ['is_active'])
    op.create_index('ix_stakes_last_roi_paid_on', 'stakes', ['last_roi_paid_on'])
    op.create_index('idx_stake_user_active', 'stakes', ['user_id', 'is_active'])
    op.create_index('idx_stake_program_active', 'stakes', ['program', 'is_active'])

    op.create_table(
        'roi_payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('stake_id', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('roi_rate', RATE, nullable=False),
        sa.Column('basis_amount', MONEY, nullable=False),
        sa.Column('payment_type', sa.String(20), nullable=False),
        sa.Column('program', sa.String(4), nullable=False),
        sa.Column('compounding_day', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('payment_date', sa.Date(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['stake_id'], ['stakes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stake_id', 'payment_date', name='uq_roi_payment_stake_day'),
        sa.CheckConstraint('amount >= 0', name='check_roi_payment_amount_non_negative'),
    )
    op.create_index('ix_roi_payments_stake_id', 'roi_payments', ['stake_id'])
    op.create_index('ix_roi_payments_payment_type', 'roi_payments', ['payment_type'])
    op.create_index('ix_roi_payments_payment_date', 'roi_payments', ['payment_date'])
    op.create_index('idx_roi_payment_user_date', 'roi_payments', ['user_id', 'payment_date'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('wallet_type', sa.String(20), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('balance_before', MONEY, nullable=False),
        sa.Column('balance_after', MONEY, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='completed'),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('reference', sa.String(100), nullable=True, comment='Idempotency key'),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference', name='uq_transactions_reference'),
        sa.CheckConstraint('amount >= 0', name='check_transaction_amount_non_negative'),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('idx_transaction_user_created', 'transactions', ['user_id', 'created_at'])
    op.create_index('idx_transaction_type_status', 'transactions', ['type', 'status'])

    op.create_table(
        'leadership_pools',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('program', sa.String(4), nullable=False),
        sa.Column('month', sa.Date(), nullable=False, comment='First day of the month'),
        sa.Column('total_deposits', MONEY, nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='collecting'),
        sa.Column('distributed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('program', 'month', name='uq_leadership_pool_program_month'),
        sa.CheckConstraint('total_deposits >= 0', name='check_pool_deposits_non_negative'),
    )
    op.create_index('ix_leadership_pools_month', 'leadership_pools', ['month'])
    op.create_index('ix_leadership_pools_status', 'leadership_pools', ['status'])

    op.create_table(
        'leadership_pool_tiers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('pool_id', sa.Integer(), nullable=False),
        sa.Column('tier', sa.String(20), nullable=False),
        sa.Column('percentage', RATE, nullable=False),
        sa.Column('total_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('qualified_members', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('per_member_share', MONEY, nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['pool_id'], ['leadership_pools.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pool_id', 'tier', name='uq_pool_tier'),
    )
    op.create_index('ix_leadership_pool_tiers_pool_id', 'leadership_pool_tiers', ['pool_id'])

    op.create_table(
        'tree_nodes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column('left_child_id', sa.Integer(), nullable=True),
        sa.Column('right_child_id', sa.Integer(), nullable=True),
        sa.Column('position', sa.String(10), nullable=False),
        sa.Column('tree_path', sa.String(2000), nullable=False, server_default=''),
        sa.Column('depth', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('personal_volume', MONEY, nullable=False, server_default='0'),
        sa.Column('left_leg_volume', MONEY, nullable=False, server_default='0'),
        sa.Column('right_leg_volume', MONEY, nullable=False, server_default='0'),
        sa.Column('left_leg_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('right_leg_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('matched_volume', MONEY, nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['tree_nodes.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['sponsor_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("position IN ('root', 'left', 'right')", name='check_tree_node_position'),
        sa.CheckConstraint('depth >= 0', name='check_tree_node_depth_non_negative'),
        sa.CheckConstraint('matched_volume >= 0', name='check_tree_node_matched_non_negative'),
    )
    op.create_index('ix_tree_nodes_user_id', 'tree_nodes', ['user_id'], unique=True)
    op.create_index('ix_tree_nodes_parent_id', 'tree_nodes', ['parent_id'])

    op.create_table(
        'matching_bonuses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('bonus_date', sa.Date(), nullable=False),
        sa.Column('left_leg_volume', MONEY, nullable=False),
        sa.Column('right_leg_volume', MONEY, nullable=False),
        sa.Column('matched_volume', MONEY, nullable=False),
        sa.Column('user_rank', sa.String(20), nullable=False),
        sa.Column('program', sa.String(4), nullable=False),
        sa.Column('matching_rate', PERCENT, nullable=False),
        sa.Column('daily_cap', MONEY, nullable=False),
        sa.Column('bonus_amount', MONEY, nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'bonus_date', name='uq_matching_bonus_user_day'),
    )
    op.create_index('ix_matching_bonuses_user_id', 'matching_bonuses', ['user_id'])
    op.create_index('ix_matching_bonuses_bonus_date', 'matching_bonuses', ['bonus_date'])

    op.create_table(
        'level_overrides',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('earner_id', sa.Integer(), nullable=False),
        sa.Column('source_user_id', sa.Integer(), nullable=False),
        sa.Column('source_payment_id', sa.Integer(), nullable=True),
        sa.Column('referral_level', sa.Integer(), nullable=False),
        sa.Column('override_percentage', PERCENT, nullable=False),
        sa.Column('activity_type', sa.String(20), nullable=False),
        sa.Column('activity_amount', MONEY, nullable=False),
        sa.Column('override_amount', MONEY, nullable=False),
        sa.Column('program', sa.String(4), nullable=False),
        sa.Column('override_date', sa.Date(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['earner_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_payment_id'], ['roi_payments.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('source_payment_id', 'earner_id', name='uq_level_override_payment_earner'),
    )
    op.create_index('ix_level_overrides_source_user_id', 'level_overrides', ['source_user_id'])
    op.create_index('ix_level_overrides_source_payment_id', 'level_overrides', ['source_payment_id'])
    op.create_index('idx_level_override_earner_date', 'level_overrides', ['earner_id', 'override_date'])

    op.create_table(
        'reconciliation_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('kind', sa.String(40), nullable=False),
        sa.Column('stake_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('details', sa.Text(), nullable=False),
        sa.Column('resolved', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['stake_id'], ['stakes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reconciliation_entries_kind', 'reconciliation_entries', ['kind'])


def downgrade() -> None:
    """Drop the staking schema."""
    op.drop_table('reconciliation_entries')
    op.drop_table('level_overrides')
    op.drop_table('matching_bonuses')
    op.drop_table('tree_nodes')
    op.drop_table('leadership_pool_tiers')
    op.drop_table('leadership_pools')
    op.drop_table('transactions')
    op.drop_table('roi_payments')
    op.drop_table('stakes')
    op.drop_table('users')
