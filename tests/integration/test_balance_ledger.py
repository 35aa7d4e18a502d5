"""
Integration Tests - Balance Ledger
Credit, debit, lock and unlock against a real database.
"""
import asyncio
import random
import pytest
from decimal import Decimal

from anapro.core.ledger.balance_ledger import BalanceLedger, CreditSource
from anapro.utils.currency import Currency
from anapro.utils.exceptions import InsufficientBalanceError, NotFoundError, ValidationError


class TestMutations:
    """Tests for single ledger operations."""

    async def test_credit_deposit_counts_towards_total(self, database, make_user):
        user = await make_user()
        async with database.session() as session:
            ledger = BalanceLedger(session)
            balance = await ledger.credit(user.wallet_address, Currency.SOL, Decimal("2"), CreditSource.DEPOSIT)
            await session.commit()
        assert balance.available(Currency.SOL) == Decimal("2")
        assert balance.total_deposited == Decimal("2")
        assert balance.total_profit_earned == Decimal("0")

    async def test_credit_profit_counts_towards_profit(self, database, make_user):
        user = await make_user()
        async with database.session() as session:
            balance = await BalanceLedger(session).credit(
                user.wallet_address, Currency.USDC, Decimal("15"), CreditSource.PROFIT
            )
            await session.commit()
        assert balance.total_profit_earned == Decimal("15")
        assert balance.total_deposited == Decimal("0")

    async def test_credit_creates_missing_row_when_user_known(self, database, make_user):
        user = await make_user()
        async with database.session() as session:
            ledger = BalanceLedger(session)
            # second ensure is a no-op
            await ledger.ensure_balance(user.wallet_address, user.id)
            balance = await ledger.credit(user.wallet_address, "usdt", 5, user_id=user.id)
            await session.commit()
        assert balance.available(Currency.USDT) == Decimal("5")

    async def test_credit_unknown_wallet(self, db_session):
        with pytest.raises(NotFoundError):
            await BalanceLedger(db_session).credit("UnknownWallet1111111111111111111111", Currency.SOL, 1)

    @pytest.mark.parametrize("amount", [0, -1, "abc"])
    async def test_credit_rejects_bad_amount(self, db_session, make_user, amount):
        user = await make_user()
        with pytest.raises(ValidationError):
            await BalanceLedger(db_session).credit(user.wallet_address, Currency.SOL, amount)

    async def test_debit_guarded(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.USDC, 100)
        async with database.session() as session:
            ledger = BalanceLedger(session)
            await ledger.debit(user.wallet_address, Currency.USDC, Decimal("40"))
            with pytest.raises(InsufficientBalanceError) as exc:
                await ledger.debit(user.wallet_address, Currency.USDC, Decimal("60.5"))
            await session.commit()
        assert Decimal(exc.value.details["available"]) == Decimal("60")
        assert await balance_of(user, Currency.USDC) == (Decimal("60"), Decimal("0"))

    async def test_lock_and_unlock(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.USDC, 1000)
        async with database.session() as session:
            ledger = BalanceLedger(session)
            await ledger.lock(user.wallet_address, Currency.USDC, Decimal("600"))
            await session.commit()
        assert await balance_of(user, Currency.USDC) == (Decimal("400"), Decimal("600"))

        async with database.session() as session:
            balance = await BalanceLedger(session).unlock(
                user.wallet_address, Currency.USDC, Decimal("600"), Decimal("25")
            )
            await session.commit()
        assert balance.available(Currency.USDC) == Decimal("1025")
        assert balance.locked(Currency.USDC) == Decimal("0")
        assert balance.total_profit_earned == Decimal("25")

    async def test_lock_without_funds(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(InsufficientBalanceError):
            await BalanceLedger(db_session).lock(user.wallet_address, Currency.SOL, Decimal("1"))

    async def test_unlock_floors_locked_at_zero(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 3)
        async with database.session() as session:
            ledger = BalanceLedger(session)
            await ledger.lock(user.wallet_address, Currency.SOL, Decimal("1"))
            await ledger.unlock(user.wallet_address, Currency.SOL, Decimal("2"))
            await session.commit()
        available, locked = await balance_of(user, Currency.SOL)
        assert locked == Decimal("0")
        assert available == Decimal("4")

    async def test_currencies_are_independent(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 1)
        await fund(user, Currency.USDT, 50)
        async with database.session() as session:
            await BalanceLedger(session).lock(user.wallet_address, Currency.USDT, Decimal("50"))
            await session.commit()
        assert await balance_of(user, Currency.SOL) == (Decimal("1"), Decimal("0"))
        assert await balance_of(user, Currency.USDT) == (Decimal("0"), Decimal("50"))


class TestInvariants:
    """Non-negativity and atomicity under adversarial sequences."""

    async def test_random_sequences_never_go_negative(self, database, make_user):
        rng = random.Random(20240611)
        user = await make_user()
        wallet = user.wallet_address

        for _ in range(200):
            currency = rng.choice(list(Currency))
            operation = rng.choice(["credit", "debit", "lock", "unlock"])
            amount = Decimal(rng.randint(1, 40))

            async with database.session() as session:
                ledger = BalanceLedger(session)
                before = await ledger.require_balance(wallet)
                available, locked = before.available(currency), before.locked(currency)
                try:
                    if operation == "credit":
                        await ledger.credit(wallet, currency, amount)
                    elif operation == "debit":
                        await ledger.debit(wallet, currency, amount)
                    elif operation == "lock":
                        await ledger.lock(wallet, currency, amount)
                    else:
                        await ledger.unlock(wallet, currency, min(amount, locked))
                    await session.commit()
                except InsufficientBalanceError:
                    await session.rollback()
                    assert amount > available

                after = await ledger.require_balance(wallet)
                for c in Currency:
                    assert after.available(c) >= 0
                    assert after.locked(c) >= 0
                # Only lock/unlock shift funds between the two buckets
                if operation in ("lock", "unlock"):
                    assert after.available(currency) + after.locked(currency) == available + locked

    async def test_concurrent_locks_single_winner(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.USDC, 100)

        async def attempt():
            async with database.session() as session:
                await BalanceLedger(session).lock(user.wallet_address, Currency.USDC, Decimal("100"))
                await session.commit()

        results = await asyncio.gather(*(attempt() for _ in range(8)), return_exceptions=True)

        successes = [r for r in results if r is None]
        failures = [r for r in results if isinstance(r, InsufficientBalanceError)]
        assert len(successes) == 1
        assert len(failures) == 7
        assert await balance_of(user, Currency.USDC) == (Decimal("0"), Decimal("100"))

    async def test_concurrent_debits_never_overdraw(self, database, make_user, fund, balance_of):
        user = await make_user()
        await fund(user, Currency.SOL, 10)

        async def attempt():
            async with database.session() as session:
                await BalanceLedger(session).debit(user.wallet_address, Currency.SOL, Decimal("3"))
                await session.commit()

        results = await asyncio.gather(*(attempt() for _ in range(6)), return_exceptions=True)
        assert sum(1 for r in results if r is None) == 3
        assert await balance_of(user, Currency.SOL) == (Decimal("1"), Decimal("0"))
