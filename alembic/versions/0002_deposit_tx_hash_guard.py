"""Limit the completed tx_hash guard to deposits

A batched payout settles several withdrawals with one on-chain signature,
so only deposits keep a unique completed signature.

Revision ID: 0002_deposit_tx_hash_guard
Revises: 0001_initial_ledger
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_deposit_tx_hash_guard'
down_revision: Union[str, None] = '0001_initial_ledger'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.drop_index('uq_transactions_completed_tx_hash', table_name='transactions')
    op.create_index(
        'uq_transactions_completed_deposit_tx_hash',
        'transactions',
        ['tx_hash'],
        unique=True,
        postgresql_where=sa.text("status = 'completed' AND type = 'deposit'"),
    )


def downgrade() -> None:
    op.drop_index('uq_transactions_completed_deposit_tx_hash', table_name='transactions')
    op.create_index(
        'uq_transactions_completed_tx_hash',
        'transactions',
        ['tx_hash'],
        unique=True,
        postgresql_where=sa.text("status = 'completed'"),
    )
