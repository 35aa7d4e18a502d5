"""
Integration Tests - Deposit Verification
On-chain verification, crediting and replay protection.
"""
import asyncio
import pytest
from decimal import Decimal

from anapro.core.ledger.deposits import DepositService
from anapro.db.models.transaction import TransactionType, TransactionStatus
from anapro.db.repositories.transaction import TransactionRepository
from anapro.config import settings
from anapro.utils.currency import Currency
from anapro.utils.exceptions import (
    NotFoundError,
    ReplayDetectedError,
    ValidationError,
    VerificationFailedError,
)


SIG = "3yZe7d4sWmT9f1Q2xNkVbq8LrPpA6cJuHgE5oKiRtYwXzMnBvC1DfG2HjK3LmN4PqR5StU6VwX7YzA8BcD9EfGh"


class TestDepositFlow:
    """Verified deposits credit exactly once."""

    async def test_sol_deposit_credits_balance(self, database, make_user, fake_chain, verifier, balance_of):
        user = await make_user()
        fake_chain.add_sol_transfer(SIG, 2_000_000_000)

        async with database.session() as session:
            record = await DepositService(session, verifier).verify_deposit(
                SIG, user.wallet_address, Decimal("2.0"), "SOL"
            )

        assert record.status is TransactionStatus.COMPLETED
        assert record.type is TransactionType.DEPOSIT
        assert record.tx_hash == SIG
        assert record.tx_verified
        assert record.description == "Direct API Verification"
        assert await balance_of(user, Currency.SOL) == (Decimal("2"), Decimal("0"))

    async def test_replay_rejected_and_balance_unchanged(self, database, make_user, fake_chain, verifier, balance_of):
        user = await make_user()
        fake_chain.add_sol_transfer(SIG, 2_000_000_000)

        async with database.session() as session:
            await DepositService(session, verifier).verify_deposit(SIG, user.wallet_address, "2.0", "SOL")

        calls_before = fake_chain.calls
        async with database.session() as session:
            with pytest.raises(ReplayDetectedError) as exc:
                await DepositService(session, verifier).verify_deposit(SIG, user.wallet_address, "2.0", "SOL")

        assert exc.value.message == "Transaction already processed"
        # Replay is caught before the chain is consulted
        assert fake_chain.calls == calls_before
        assert await balance_of(user, Currency.SOL) == (Decimal("2"), Decimal("0"))

        async with database.session() as session:
            deposits = await TransactionRepository(session).list_for_wallet(
                user.wallet_address, type=TransactionType.DEPOSIT, status=TransactionStatus.COMPLETED
            )
        assert len(deposits) == 1

    async def test_concurrent_replay_credits_once(self, database, make_user, fake_chain, verifier, balance_of):
        user = await make_user()
        fake_chain.add_token_transfer(SIG, settings.USDC_MINT, pre="0", post="500")

        async def submit():
            async with database.session() as session:
                return await DepositService(session, verifier).verify_deposit(
                    SIG, user.wallet_address, Decimal("500"), "USDC"
                )

        results = await asyncio.gather(*(submit() for _ in range(4)), return_exceptions=True)

        assert sum(1 for r in results if not isinstance(r, Exception)) == 1
        assert all(isinstance(r, ReplayDetectedError) for r in results if isinstance(r, Exception))
        assert await balance_of(user, Currency.USDC) == (Decimal("500"), Decimal("0"))

    async def test_failed_verification_changes_nothing(self, database, make_user, fake_chain, verifier, balance_of):
        user = await make_user()
        fake_chain.add_sol_transfer(SIG, 1_000_000_000)

        async with database.session() as session:
            with pytest.raises(VerificationFailedError) as exc:
                await DepositService(session, verifier).verify_deposit(SIG, user.wallet_address, "2.0", "SOL")

        assert exc.value.details["received"] == "1"
        assert await balance_of(user, Currency.SOL) == (Decimal("0"), Decimal("0"))
        async with database.session() as session:
            assert await TransactionRepository(session).count_for_wallet(user.wallet_address) == 0

    async def test_unknown_wallet(self, database, fake_chain, verifier):
        fake_chain.add_sol_transfer(SIG, 2_000_000_000)
        async with database.session() as session:
            with pytest.raises(NotFoundError):
                await DepositService(session, verifier).verify_deposit(
                    SIG, "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM", "2.0", "SOL"
                )

    async def test_user_id_must_own_wallet(self, database, make_user, fake_chain, verifier, balance_of):
        owner, other = await make_user(), await make_user()
        fake_chain.add_sol_transfer(SIG, 2_000_000_000)
        async with database.session() as session:
            with pytest.raises(ValidationError):
                await DepositService(session, verifier).verify_deposit(
                    SIG, owner.wallet_address, "2.0", "SOL", user_id=other.id
                )
        assert await balance_of(owner, Currency.SOL) == (Decimal("0"), Decimal("0"))

    @pytest.mark.parametrize("signature, amount, currency", [
        ("", "1", "SOL"),
        (SIG, "0", "SOL"),
        (SIG, "1", "DOGE"),
    ])
    async def test_invalid_input(self, db_session, make_user, verifier, signature, amount, currency):
        user = await make_user()
        with pytest.raises(ValidationError):
            await DepositService(db_session, verifier).verify_deposit(
                signature, user.wallet_address, amount, currency
            )


class TestPendingDeposits:
    """Completing a previously announced deposit record."""

    async def _pending(self, database, user, amount="250", currency=Currency.USDT):
        async with database.session() as session:
            record = await TransactionRepository(session).append(
                user_id=user.id,
                wallet_address=user.wallet_address,
                type=TransactionType.DEPOSIT,
                amount=Decimal(amount),
                currency=currency,
                status=TransactionStatus.PENDING,
            )
            await session.commit()
        return record

    async def test_pending_record_completed_in_place(self, database, make_user, fake_chain, verifier, balance_of):
        user = await make_user()
        pending = await self._pending(database, user)
        fake_chain.add_token_transfer(SIG, settings.USDT_MINT, pre="10", post="260")

        async with database.session() as session:
            record = await DepositService(session, verifier).verify_deposit(
                SIG, user.wallet_address, "250", "USDT", transaction_id=pending.id
            )

        assert record.id == pending.id
        assert record.status is TransactionStatus.COMPLETED
        assert record.tx_hash == SIG
        assert record.tx_verified_at is not None
        assert await balance_of(user, Currency.USDT) == (Decimal("250"), Decimal("0"))
        async with database.session() as session:
            assert await TransactionRepository(session).count_for_wallet(user.wallet_address) == 1

    async def test_pending_record_must_match_claim(self, database, make_user, fake_chain, verifier, balance_of):
        user = await make_user()
        pending = await self._pending(database, user, amount="100")
        fake_chain.add_token_transfer(SIG, settings.USDT_MINT, pre="0", post="250")

        async with database.session() as session:
            with pytest.raises(ValidationError):
                await DepositService(session, verifier).verify_deposit(
                    SIG, user.wallet_address, "250", "USDT", transaction_id=pending.id
                )
        # Credit rolled back with the failed completion
        assert await balance_of(user, Currency.USDT) == (Decimal("0"), Decimal("0"))
