"""Initial ledger schema

Revision ID: 0001_initial_ledger
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_ledger'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _amount(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(20, 8), nullable=False, server_default='0', **kwargs)


def upgrade() -> None:
    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('wallet_address', sa.String(44), nullable=False),
        sa.Column('username', sa.String(30), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('country_code', sa.String(2), nullable=True),
        sa.Column('profile_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('login_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_wallet_address', 'users', ['wallet_address'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    # Balances
    op.create_table(
        'platform_balances',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('wallet_address', sa.String(44), nullable=False),
        _amount('sol_balance'),
        _amount('usdc_balance'),
        _amount('usdt_balance'),
        _amount('sol_locked'),
        _amount('usdc_locked'),
        _amount('usdt_locked'),
        _amount('total_deposited'),
        _amount('total_withdrawn'),
        _amount('total_profit_earned'),
        sa.Column('last_updated', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', name='uq_platform_balances_user_id'),
        sa.CheckConstraint('sol_balance >= 0', name='ck_platform_balances_sol_balance'),
        sa.CheckConstraint('usdc_balance >= 0', name='ck_platform_balances_usdc_balance'),
        sa.CheckConstraint('usdt_balance >= 0', name='ck_platform_balances_usdt_balance'),
        sa.CheckConstraint('sol_locked >= 0', name='ck_platform_balances_sol_locked'),
        sa.CheckConstraint('usdc_locked >= 0', name='ck_platform_balances_usdc_locked'),
        sa.CheckConstraint('usdt_locked >= 0', name='ck_platform_balances_usdt_locked'),
        sa.CheckConstraint('total_deposited >= 0', name='ck_platform_balances_total_deposited'),
        sa.CheckConstraint('total_withdrawn >= 0', name='ck_platform_balances_total_withdrawn'),
        sa.CheckConstraint('total_profit_earned >= 0', name='ck_platform_balances_total_profit'),
    )
    op.create_index('ix_platform_balances_wallet_address', 'platform_balances', ['wallet_address'], unique=True)

    # Transaction log
    op.create_table(
        'transactions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('wallet_address', sa.String(44), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('amount', sa.Numeric(20, 8), nullable=False),
        sa.Column('currency', sa.String(4), nullable=False),
        sa.Column('status', sa.String(9), nullable=False),
        sa.Column('tx_hash', sa.String(128), nullable=True),
        sa.Column('tx_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('tx_verified_at', sa.DateTime(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('amount > 0', name='ck_transactions_amount_positive'),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_tx_hash', 'transactions', ['tx_hash'])
    op.create_index('ix_transactions_wallet_created', 'transactions', ['wallet_address', 'created_at'])
    # Double-credit guard: one completed record per on-chain signature
    op.create_index(
        'uq_transactions_completed_tx_hash',
        'transactions',
        ['tx_hash'],
        unique=True,
        postgresql_where=sa.text("status = 'completed'"),
    )

    # Investments
    op.create_table(
        'investments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('wallet_address', sa.String(44), nullable=False),
        sa.Column('plan_name', sa.String(100), nullable=False),
        sa.Column('amount', sa.Numeric(20, 8), nullable=False),
        sa.Column('currency', sa.String(4), nullable=False),
        sa.Column('daily_return', sa.Numeric(5, 2), nullable=False),
        sa.Column('duration_days', sa.Integer(), nullable=False),
        sa.Column('expected_return', sa.Numeric(20, 8), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('maturity_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('principal_unlocked_at', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(9), nullable=False, server_default='active'),
        sa.Column('profit_earned', sa.Numeric(20, 8), nullable=False, server_default='0'),
        sa.Column('last_profit_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('amount > 0', name='ck_investments_amount_positive'),
        sa.CheckConstraint('duration_days > 0', name='ck_investments_duration_positive'),
        sa.CheckConstraint('profit_earned >= 0', name='ck_investments_profit_non_negative'),
    )
    op.create_index('ix_investments_user_id', 'investments', ['user_id'])
    op.create_index('ix_investments_wallet_address', 'investments', ['wallet_address'])
    op.create_index('ix_investments_status_unlocked', 'investments', ['status', 'principal_unlocked_at'])

    # Sessions
    op.create_table(
        'user_sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('wallet_address', sa.String(44), nullable=False),
        sa.Column('session_token', sa.Text(), nullable=False),
        sa.Column('signature', sa.String(128), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('last_activity_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('session_token', name='uq_user_sessions_session_token'),
    )
    op.create_index('ix_user_sessions_user_id', 'user_sessions', ['user_id'])


def downgrade() -> None:
    op.drop_table('user_sessions')
    op.drop_table('investments')
    op.drop_table('transactions')
    op.drop_table('platform_balances')
    op.drop_table('users')
