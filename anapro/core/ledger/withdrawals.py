"""
AnaPro Platform - Withdrawal Service

Withdrawals debit the available balance and leave a pending record for an
administrator to pay out. The admin either completes the record with the
payout signature or fails it, which credits the amount back.
"""
from decimal import Decimal
from typing import Any, Optional
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from anapro.core.ledger.balance_ledger import BalanceLedger, CreditSource
from anapro.core.security import is_valid_wallet_address
from anapro.db.models.transaction import Transaction, TransactionType, TransactionStatus
from anapro.db.models.user import User
from anapro.db.repositories.transaction import TransactionRepository
from anapro.utils.clock import utcnow
from anapro.utils.currency import Currency, quantize_amount, require_positive
from anapro.utils.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)


class WithdrawalService:
    """Withdrawal requests and their admin resolution."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = BalanceLedger(db)
        self.transactions = TransactionRepository(db)

    async def request_withdrawal(
        self,
        user: User,
        amount: Any,
        currency: Any,
        destination_address: str,
    ) -> Transaction:
        """
        Debit the balance and record a pending withdrawal.

        Both writes share one database transaction, so a failure to record
        the request leaves the balance untouched.

        Raises:
            ValidationError: bad amount, currency or destination
            InsufficientBalanceError: available balance too low
        """
        currency = Currency.parse(currency)
        amount = quantize_amount(require_positive(amount))
        if not destination_address or not is_valid_wallet_address(destination_address):
            raise ValidationError(
                "Invalid destination address", details={"destinationAddress": destination_address}
            )

        try:
            await self.ledger.debit(user.wallet_address, currency, amount)
            record = await self.transactions.append(
                user_id=user.id,
                wallet_address=user.wallet_address,
                type=TransactionType.WITHDRAWAL,
                amount=amount,
                currency=currency,
                status=TransactionStatus.PENDING,
                description="Withdrawal request",
                meta={
                    "destinationAddress": destination_address,
                    "requestedAt": utcnow().isoformat(),
                },
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Withdrawal {record.id} requested: {amount} {currency.value} "
            f"from {user.wallet_address} to {destination_address}"
        )
        return record

    async def complete_withdrawal(
        self,
        transaction_id: uuid.UUID,
        payout_signature: str,
        admin_wallet: Optional[str] = None,
    ) -> Transaction:
        """
        Mark a pending withdrawal as paid out.

        Args:
            transaction_id: Pending withdrawal record
            payout_signature: Signature of the on-chain payout
            admin_wallet: Administrator performing the action

        Returns:
            The completed record
        """
        if not payout_signature:
            raise ValidationError("Payout transaction signature is required")
        record = await self._get_pending(transaction_id)

        meta = dict(record.meta or {})
        meta.update({"completedAt": utcnow().isoformat(), "processedBy": admin_wallet})

        try:
            moved = await self.transactions.transition_status(
                record.id,
                TransactionStatus.PENDING,
                TransactionStatus.COMPLETED,
                tx_hash=payout_signature,
                tx_verified=True,
                tx_verified_at=utcnow(),
                meta=meta,
            )
            if not moved:
                raise InvalidStateTransitionError("Withdrawal is no longer pending")
            await self.ledger.record_withdrawn(record.wallet_address, Decimal(record.amount))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Withdrawal {record.id} completed by {admin_wallet} ({payout_signature})")
        return await self.transactions.get_by_id(record.id)

    async def fail_withdrawal(
        self,
        transaction_id: uuid.UUID,
        reason: Optional[str] = None,
        admin_wallet: Optional[str] = None,
    ) -> Transaction:
        """
        Mark a pending withdrawal as failed and return the funds to the
        available balance, with a refund record, in the same database
        transaction.
        """
        record = await self._get_pending(transaction_id)

        meta = dict(record.meta or {})
        meta.update({
            "failedAt": utcnow().isoformat(),
            "failureReason": reason,
            "processedBy": admin_wallet,
        })

        try:
            moved = await self.transactions.transition_status(
                record.id,
                TransactionStatus.PENDING,
                TransactionStatus.FAILED,
                meta=meta,
            )
            if not moved:
                raise InvalidStateTransitionError("Withdrawal is no longer pending")
            await self.ledger.credit(
                record.wallet_address,
                record.currency,
                Decimal(record.amount),
                CreditSource.REFUND,
            )
            await self.transactions.append(
                user_id=record.user_id,
                wallet_address=record.wallet_address,
                type=TransactionType.REFUND,
                amount=Decimal(record.amount),
                currency=record.currency,
                status=TransactionStatus.COMPLETED,
                description="Failed withdrawal returned",
                meta={"withdrawalId": str(record.id)},
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.warning(
            f"Withdrawal {record.id} failed ({reason}); {record.amount} {record.currency.value} "
            f"credited back to {record.wallet_address}"
        )
        return await self.transactions.get_by_id(record.id)

    async def _get_pending(self, transaction_id: uuid.UUID) -> Transaction:
        record = await self.transactions.get_by_id(transaction_id)
        if record is None or record.type is not TransactionType.WITHDRAWAL:
            raise NotFoundError("Withdrawal not found")
        if record.status is not TransactionStatus.PENDING:
            raise InvalidStateTransitionError(
                f"Withdrawal is already {record.status.value}",
                details={"status": record.status.value},
            )
        return record
