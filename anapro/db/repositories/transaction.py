"""
AnaPro Platform - Transaction Repository

Append-mostly store for ledger transaction records.
Completed records are never rewritten. Only pending rows change status:
deposits move to completed once verified, withdrawals to completed or failed.
"""
from decimal import Decimal
from typing import Optional, List, Dict, Any
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, desc

from anapro.db.models.transaction import Transaction, TransactionType, TransactionStatus
from anapro.utils.clock import utcnow
from anapro.utils.currency import Currency, quantize_amount


class TransactionRepository:
    """
    Transaction Repository

    Handles all database operations for ledger records:
    - Appending records
    - Replay lookups by on-chain signature
    - History queries
    - Per-currency aggregates used by reconciliation
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== CREATE ====================

    async def create(self, record: Transaction) -> Transaction:
        """Append a transaction record."""
        self.db.add(record)
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def append(
        self,
        user_id: uuid.UUID,
        wallet_address: str,
        type: TransactionType,
        amount: Decimal,
        currency: Currency,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        tx_hash: Optional[str] = None,
        tx_verified: bool = False,
        description: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Transaction:
        """Build and append a transaction record."""
        record = Transaction(
            user_id=user_id,
            wallet_address=wallet_address,
            type=type,
            amount=amount,
            currency=currency,
            status=status,
            tx_hash=tx_hash,
            tx_verified=tx_verified,
            tx_verified_at=utcnow() if tx_verified else None,
            description=description,
            meta=meta,
        )
        return await self.create(record)

    # ==================== READ ====================

    async def get_by_id(self, transaction_id: uuid.UUID) -> Optional[Transaction]:
        """Get transaction by ID."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_completed_deposit_by_hash(self, tx_hash: str) -> Optional[Transaction]:
        """Get the completed deposit carrying an on-chain signature, if any."""
        result = await self.db.execute(
            select(Transaction).where(
                Transaction.tx_hash == tx_hash,
                Transaction.type == TransactionType.DEPOSIT,
                Transaction.status == TransactionStatus.COMPLETED,
            )
        )
        return result.scalars().first()

    async def list_for_wallet(
        self,
        wallet_address: str,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Transaction]:
        """List a wallet's transactions, newest first."""
        query = select(Transaction).where(Transaction.wallet_address == wallet_address)
        if type is not None:
            query = query.where(Transaction.type == type)
        if status is not None:
            query = query.where(Transaction.status == status)
        query = query.order_by(desc(Transaction.created_at)).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_for_wallet(
        self,
        wallet_address: str,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None,
    ) -> int:
        query = select(func.count(Transaction.id)).where(Transaction.wallet_address == wallet_address)
        if type is not None:
            query = query.where(Transaction.type == type)
        if status is not None:
            query = query.where(Transaction.status == status)
        result = await self.db.execute(query)
        return int(result.scalar_one())

    # ==================== UPDATE ====================

    async def transition_status(
        self,
        transaction_id: uuid.UUID,
        from_status: TransactionStatus,
        to_status: TransactionStatus,
        **values,
    ) -> bool:
        """
        Move a record between statuses if it is still in ``from_status``.

        Returns:
            True if this call performed the transition
        """
        result = await self.db.execute(
            update(Transaction)
            .where(Transaction.id == transaction_id, Transaction.status == from_status)
            .values(status=to_status, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ==================== STATISTICS ====================

    async def sum_by_currency(
        self,
        user_id: uuid.UUID,
        type: TransactionType,
        statuses: List[TransactionStatus],
    ) -> Dict[Currency, Decimal]:
        """Total amount per currency for a user's records of one type."""
        result = await self.db.execute(
            select(Transaction.currency, func.coalesce(func.sum(Transaction.amount), 0))
            .where(
                Transaction.user_id == user_id,
                Transaction.type == type,
                Transaction.status.in_(statuses),
            )
            .group_by(Transaction.currency)
        )
        totals = {currency: Decimal("0") for currency in Currency}
        for currency, total in result.all():
            totals[Currency(currency)] = quantize_amount(Decimal(str(total)))
        return totals
