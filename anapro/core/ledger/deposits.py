"""
AnaPro Platform - Deposit Service

Verifies an on-chain deposit and credits it exactly once.

A signature is credited at most once: the service refuses signatures that
already have a completed deposit, and the partial unique index on
``(tx_hash) WHERE status = 'completed' AND type = 'deposit'`` turns a
concurrent double submit into an IntegrityError that rolls back the credit
together with the record.
"""
from decimal import Decimal
from typing import Any, Optional
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from loguru import logger

from anapro.core.chain.verifier import ChainVerifier
from anapro.core.ledger.balance_ledger import BalanceLedger, CreditSource
from anapro.db.models.transaction import Transaction, TransactionType, TransactionStatus
from anapro.db.models.user import User
from anapro.db.repositories.transaction import TransactionRepository
from anapro.db.repositories.user import UserRepository
from anapro.utils.clock import utcnow
from anapro.utils.currency import Currency, quantize_amount, require_positive
from anapro.utils.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    ReplayDetectedError,
    ValidationError,
    VerificationFailedError,
)


class DepositService:
    """
    Deposit Service

    Responsible for:
    - Replay protection on the transaction signature
    - On-chain verification through ChainVerifier
    - Crediting the balance and recording the completed deposit atomically
    """

    def __init__(self, db: AsyncSession, verifier: ChainVerifier):
        self.db = db
        self.verifier = verifier
        self.ledger = BalanceLedger(db)
        self.transactions = TransactionRepository(db)
        self.users = UserRepository(db)

    async def verify_deposit(
        self,
        tx_signature: str,
        wallet_address: str,
        amount: Any,
        currency: Any,
        user_id: Optional[uuid.UUID] = None,
        transaction_id: Optional[uuid.UUID] = None,
    ) -> Transaction:
        """
        Verify and credit a deposit.

        Args:
            tx_signature: On-chain transaction signature
            wallet_address: Wallet to credit
            amount: Claimed amount
            currency: Claimed currency
            user_id: Owner id, if the caller knows it
            transaction_id: Pending deposit record to complete instead of
                inserting a new one

        Returns:
            The completed deposit record

        Raises:
            ValidationError: malformed input
            ReplayDetectedError: signature already credited
            VerificationFailedError: the chain does not show the claimed transfer
            NotFoundError: unknown user or pending record
        """
        if not tx_signature:
            raise ValidationError("Transaction signature is required")
        currency = Currency.parse(currency)
        amount = quantize_amount(require_positive(amount))

        if await self.transactions.get_completed_deposit_by_hash(tx_signature) is not None:
            logger.warning(f"Replay rejected for signature {tx_signature}")
            raise ReplayDetectedError()

        result = await self.verifier.verify(tx_signature, amount, currency)
        if not result.verified:
            details = {"reason": result.reason}
            if result.received is not None:
                details["received"] = str(result.received)
            raise VerificationFailedError(details=details)

        user = await self._resolve_user(wallet_address, user_id)

        try:
            await self.ledger.credit(
                wallet_address, currency, amount, CreditSource.DEPOSIT, user_id=user.id
            )
            if transaction_id is not None:
                record = await self._complete_pending(transaction_id, user, tx_signature, amount, currency)
            else:
                record = await self.transactions.append(
                    user_id=user.id,
                    wallet_address=wallet_address,
                    type=TransactionType.DEPOSIT,
                    amount=amount,
                    currency=currency,
                    status=TransactionStatus.COMPLETED,
                    tx_hash=tx_signature,
                    tx_verified=True,
                    description="Direct API Verification",
                )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(f"Concurrent replay rejected for signature {tx_signature}")
            raise ReplayDetectedError()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Deposit {amount} {currency.value} credited to {wallet_address} ({tx_signature})")
        return await self.transactions.get_by_id(record.id)

    async def _resolve_user(self, wallet_address: str, user_id: Optional[uuid.UUID]) -> User:
        user = await self.users.get_by_wallet(wallet_address)
        if user is None:
            raise NotFoundError("User not found")
        if user_id is not None and user.id != user_id:
            raise ValidationError("User does not own this wallet")
        return user

    async def _complete_pending(
        self,
        transaction_id: uuid.UUID,
        user: User,
        tx_signature: str,
        amount: Decimal,
        currency: Currency,
    ) -> Transaction:
        record = await self.transactions.get_by_id(transaction_id)
        if record is None or record.user_id != user.id or record.type is not TransactionType.DEPOSIT:
            raise NotFoundError("Pending deposit not found")
        if record.currency is not currency or quantize_amount(Decimal(record.amount)) != amount:
            raise ValidationError(
                "Deposit does not match the pending record",
                details={"amount": str(record.amount), "currency": record.currency.value},
            )

        completed = await self.transactions.transition_status(
            record.id,
            TransactionStatus.PENDING,
            TransactionStatus.COMPLETED,
            tx_hash=tx_signature,
            tx_verified=True,
            tx_verified_at=utcnow(),
        )
        if not completed:
            raise InvalidStateTransitionError(
                "Deposit record is not pending", details={"status": record.status.value}
            )
        return record
