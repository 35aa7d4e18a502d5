"""
AnaPro Platform - Test Configuration
Shared fixtures and test configuration.
"""
import json
import os
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

import httpx
import pytest
from solders.keypair import Keypair

# Fixed keys so the environment can name them before settings load
ADMIN_KEYPAIR = Keypair.from_seed(bytes([11] * 32))
PLATFORM_KEYPAIR = Keypair.from_seed(bytes([22] * 32))
PLATFORM_WALLET = str(PLATFORM_KEYPAIR.pubkey())
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
CRON_SECRET = "test-cron-secret"

# Set test environment
os.environ["APP_ENV"] = "testing"
os.environ["DEBUG"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key"
os.environ["CRON_SECRET"] = CRON_SECRET
os.environ["ADMIN_WALLETS"] = json.dumps([str(ADMIN_KEYPAIR.pubkey())])
os.environ["PLATFORM_WALLET"] = PLATFORM_WALLET
os.environ["USDC_MINT"] = USDC_MINT
os.environ["USDT_MINT"] = USDT_MINT
os.environ["LOG_TO_FILE"] = "false"

from anapro.core.chain.rpc_client import SolanaRpcClient
from anapro.core.chain.verifier import ChainVerifier
from anapro.core.ledger.balance_ledger import BalanceLedger, CreditSource
from anapro.db.database import Database
from anapro.db.models.transaction import TransactionType, TransactionStatus
from anapro.db.repositories.transaction import TransactionRepository
from anapro.db.repositories.user import UserRepository
from anapro.utils.currency import Currency


# =========================
# Chain Fixtures
# =========================

def sol_transfer_tx(destination: str, lamports: int, inner: bool = False, err: Any = None) -> dict:
    """getTransaction result carrying one system transfer."""
    instruction = {
        "program": "system",
        "programId": "11111111111111111111111111111111",
        "parsed": {
            "type": "transfer",
            "info": {
                "source": str(Keypair().pubkey()),
                "destination": destination,
                "lamports": lamports,
            },
        },
    }
    meta = {
        "err": err,
        "preBalances": [],
        "postBalances": [],
        "preTokenBalances": [],
        "postTokenBalances": [],
        "innerInstructions": [],
    }
    instructions = []
    if inner:
        meta["innerInstructions"] = [{"index": 0, "instructions": [instruction]}]
    else:
        instructions.append(instruction)
    return {"meta": meta, "transaction": {"message": {"instructions": instructions}}}


def token_transfer_tx(owner: str, mint: str, pre: str, post: str, decimals: int = 6) -> dict:
    """getTransaction result where ``owner``'s token balance moves from pre to post."""
    def entry(amount: str) -> dict:
        return {
            "accountIndex": 1,
            "mint": mint,
            "owner": owner,
            "uiTokenAmount": {
                "amount": str(int(Decimal(amount) * (10 ** decimals))),
                "decimals": decimals,
                "uiAmountString": amount,
            },
        }

    return {
        "meta": {
            "err": None,
            "preBalances": [],
            "postBalances": [],
            "preTokenBalances": [entry(pre)],
            "postTokenBalances": [entry(post)],
            "innerInstructions": [],
        },
        "transaction": {"message": {"instructions": []}},
    }


class FakeChain:
    """In-memory getTransaction backend served through httpx.MockTransport."""

    def __init__(self):
        self.transactions: Dict[str, dict] = {}
        self.calls = 0
        self.fail_with: Optional[Exception] = None

    def add(self, signature: str, tx: dict) -> None:
        self.transactions[signature] = tx

    def add_sol_transfer(self, signature: str, lamports: int, destination: str = PLATFORM_WALLET, **kwargs) -> None:
        self.add(signature, sol_transfer_tx(destination, lamports, **kwargs))

    def add_token_transfer(self, signature: str, mint: str, pre: str, post: str, owner: str = PLATFORM_WALLET) -> None:
        self.add(signature, token_transfer_tx(owner, mint, pre, post))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        body = json.loads(request.content)
        signature = body["params"][0]
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": body["id"], "result": self.transactions.get(signature)},
        )

    def verifier(self) -> ChainVerifier:
        client = SolanaRpcClient(
            rpc_url="http://solana-rpc.test",
            timeout=2.0,
            transport=httpx.MockTransport(self.handler),
        )
        return ChainVerifier(
            rpc_client=client,
            platform_wallet=PLATFORM_WALLET,
            token_mints={Currency.USDC: USDC_MINT, Currency.USDT: USDT_MINT},
        )


@pytest.fixture
def admin_keypair() -> Keypair:
    return ADMIN_KEYPAIR


@pytest.fixture
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def verifier(fake_chain) -> ChainVerifier:
    return fake_chain.verifier()


# =========================
# Database Fixtures
# =========================

@pytest.fixture
async def database(tmp_path):
    """File-backed SQLite database so concurrent sessions use separate connections."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'anapro_test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


# =========================
# User Fixtures
# =========================

@pytest.fixture
def make_user(database) -> Callable:
    """Factory creating a user and its zeroed balance row."""
    async def _make_user(keypair: Optional[Keypair] = None):
        wallet = str((keypair or Keypair()).pubkey())
        async with database.session() as session:
            user = await UserRepository(session).create_for_wallet(wallet)
            await BalanceLedger(session).ensure_balance(wallet, user.id)
            await session.commit()
        return user

    return _make_user


@pytest.fixture
def fund(database) -> Callable:
    """Credit a deposit and log it, as a verified deposit would."""
    async def _fund(user, currency: Currency, amount, tx_hash: Optional[str] = None):
        amount = Decimal(str(amount))
        async with database.session() as session:
            await BalanceLedger(session).credit(
                user.wallet_address, currency, amount, CreditSource.DEPOSIT, user_id=user.id
            )
            await TransactionRepository(session).append(
                user_id=user.id,
                wallet_address=user.wallet_address,
                type=TransactionType.DEPOSIT,
                amount=amount,
                currency=currency,
                status=TransactionStatus.COMPLETED,
                tx_hash=tx_hash or f"seed-{Keypair().pubkey()}",
                tx_verified=True,
            )
            await session.commit()

    return _fund


@pytest.fixture
def balance_of(database) -> Callable:
    """Read (available, locked) of a wallet in a fresh session."""
    async def _balance_of(user, currency: Currency):
        async with database.session() as session:
            balance = await BalanceLedger(session).require_balance(user.wallet_address)
            return balance.available(currency), balance.locked(currency)

    return _balance_of


# =========================
# HTTP Fixtures
# =========================

@pytest.fixture
def app(database, verifier):
    from anapro.main import create_application
    return create_application(database=database, verifier=verifier)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def login(client) -> Callable:
    """Sign a fresh challenge with ``keypair`` and return the session token."""
    async def _login(keypair: Keypair) -> str:
        wallet = str(keypair.pubkey())
        challenge = await client.post("/api/v1/auth/challenge", json={"walletAddress": wallet})
        message = challenge.json()["message"]
        signature = keypair.sign_message(message.encode("utf-8"))
        response = await client.post(
            "/api/v1/auth/login",
            json={"walletAddress": wallet, "signature": str(signature), "message": message},
        )
        assert response.status_code == 200, response.text
        return response.json()["sessionToken"]

    return _login
