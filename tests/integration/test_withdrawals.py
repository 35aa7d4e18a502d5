"""
Integration Tests - Withdrawals
Requests debit immediately; admins complete or fail the payout.
"""
import pytest
from decimal import Decimal
from unittest.mock import patch

from solders.keypair import Keypair

from anapro.core.ledger.balance_ledger import BalanceLedger
from anapro.core.ledger.withdrawals import WithdrawalService
from anapro.db.models.transaction import TransactionType, TransactionStatus
from anapro.db.repositories.transaction import TransactionRepository
from anapro.utils.currency import Currency
from anapro.utils.exceptions import (
    InsufficientBalanceError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)


DESTINATION = str(Keypair.from_seed(bytes([33] * 32)).pubkey())
PAYOUT_SIG = "4hXTCkRzt9WyecNzV1XPgCDfGAZzQKNxLXgynz5QDuWWPSAZBZSHptvWRL3BjCvzUXRdKvHL2b7yGrRQcWyaqsaBCncVG7BF"


async def request(database, user, amount="40", currency="SOL"):
    async with database.session() as session:
        return await WithdrawalService(session).request_withdrawal(user, amount, currency, DESTINATION)


class TestRequestWithdrawal:
    """Requesting a withdrawal."""

    async def test_debits_and_records_pending(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 100)

        record = await request(database, user)

        assert record.type is TransactionType.WITHDRAWAL
        assert record.status is TransactionStatus.PENDING
        assert record.meta["destinationAddress"] == DESTINATION
        assert "requestedAt" in record.meta
        assert await balance_of(user, Currency.SOL) == (Decimal("60"), Decimal("0"))

    async def test_insufficient_balance(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 10)
        with pytest.raises(InsufficientBalanceError):
            await request(database, user, amount="10.5")
        assert await balance_of(user, Currency.SOL) == (Decimal("10"), Decimal("0"))

    async def test_locked_funds_not_withdrawable(self, database, make_user, fund):
        user = await make_user()
        await fund(user, Currency.USDC, 1000)
        async with database.session() as session:
            await BalanceLedger(session).lock(user.wallet_address, Currency.USDC, Decimal("1000"))
            await session.commit()
        with pytest.raises(InsufficientBalanceError):
            await request(database, user, amount="1", currency="USDC")

    @pytest.mark.parametrize("destination", ["", "not-a-wallet"])
    async def test_invalid_destination(self, db_session, make_user, destination):
        user = await make_user()
        with pytest.raises(ValidationError):
            await WithdrawalService(db_session).request_withdrawal(user, "1", "SOL", destination)

    async def test_record_failure_rolls_back_debit(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 100)
        with patch.object(TransactionRepository, "append", side_effect=RuntimeError("insert failed")):
            with pytest.raises(RuntimeError):
                await request(database, user)
        assert await balance_of(user, Currency.SOL) == (Decimal("100"), Decimal("0"))


class TestResolveWithdrawal:
    """Admin completion and failure."""

    async def test_complete(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 100)
        pending = await request(database, user)

        async with database.session() as session:
            record = await WithdrawalService(session).complete_withdrawal(
                pending.id, PAYOUT_SIG, admin_wallet="admin"
            )
            balance = await BalanceLedger(session).require_balance(user.wallet_address)

        assert record.status is TransactionStatus.COMPLETED
        assert record.tx_hash == PAYOUT_SIG
        assert record.meta["processedBy"] == "admin"
        assert balance.total_withdrawn == Decimal("40")
        assert await balance_of(user, Currency.SOL) == (Decimal("60"), Decimal("0"))

    async def test_fail_credits_back(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 100)
        pending = await request(database, user)

        async with database.session() as session:
            record = await WithdrawalService(session).fail_withdrawal(pending.id, reason="bad address")
            balance = await BalanceLedger(session).require_balance(user.wallet_address)

        assert record.status is TransactionStatus.FAILED
        assert record.meta["failureReason"] == "bad address"
        assert balance.total_withdrawn == Decimal("0")
        # Refund credits do not count as deposits
        assert balance.total_deposited == Decimal("100")
        assert await balance_of(user, Currency.SOL) == (Decimal("100"), Decimal("0"))

        async with database.session() as session:
            refunds = await TransactionRepository(session).list_for_wallet(
                user.wallet_address, type=TransactionType.REFUND
            )
        assert len(refunds) == 1
        assert refunds[0].amount == Decimal("40")
        assert refunds[0].status is TransactionStatus.COMPLETED
        assert refunds[0].meta == {"withdrawalId": str(pending.id)}

    async def test_batched_payout_shares_signature(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 100)
        first = await request(database, user, amount="10")
        second = await request(database, user, amount="15")

        async with database.session() as session:
            service = WithdrawalService(session)
            await service.complete_withdrawal(first.id, PAYOUT_SIG)
            record = await service.complete_withdrawal(second.id, PAYOUT_SIG)
            balance = await BalanceLedger(session).require_balance(user.wallet_address)

        assert record.status is TransactionStatus.COMPLETED
        assert record.tx_hash == PAYOUT_SIG
        assert balance.total_withdrawn == Decimal("25")
        assert await balance_of(user, Currency.SOL) == (Decimal("75"), Decimal("0"))

    async def test_resolved_withdrawal_is_final(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 100)
        pending = await request(database, user)

        async with database.session() as session:
            service = WithdrawalService(session)
            await service.complete_withdrawal(pending.id, PAYOUT_SIG)
            with pytest.raises(InvalidStateTransitionError):
                await service.fail_withdrawal(pending.id)
            with pytest.raises(InvalidStateTransitionError):
                await service.complete_withdrawal(pending.id, PAYOUT_SIG)

        assert await balance_of(user, Currency.SOL) == (Decimal("60"), Decimal("0"))

    async def test_unknown_or_non_withdrawal(self, database, make_user, fund):
        user = await make_user()
        await fund(user, Currency.SOL, 1)
        async with database.session() as session:
            deposit = (await TransactionRepository(session).list_for_wallet(user.wallet_address))[0]
            service = WithdrawalService(session)
            with pytest.raises(NotFoundError):
                await service.fail_withdrawal(deposit.id)
            with pytest.raises(ValidationError):
                await service.complete_withdrawal(deposit.id, "")
