"""
AnaPro Platform - Chain Verifier

Decides whether a confirmed on-chain transaction really moved the claimed
amount of a currency to the platform wallet.

- SOL: a system ``transfer`` to the platform wallet, top-level or inner
  instruction, within ``SOL_LAMPORT_TOLERANCE`` lamports
- USDC/USDT: the change in the platform wallet's token balance for the
  currency mint, within ``TOKEN_AMOUNT_TOLERANCE``

Any doubt (missing transaction, on-chain error, RPC failure, malformed
payload) yields ``verified=False``. Never touches the ledger.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from anapro.config import settings
from anapro.core.chain.rpc_client import SolanaRpcClient, ChainRpcError
from anapro.utils.currency import Currency, require_positive, sol_to_lamports


SYSTEM_PROGRAM = "system"


@dataclass
class VerificationResult:
    """Outcome of verifying one deposit claim."""
    verified: bool
    reason: Optional[str] = None
    received: Optional[Decimal] = None

    @classmethod
    def rejected(cls, reason: str, received: Optional[Decimal] = None) -> "VerificationResult":
        return cls(verified=False, reason=reason, received=received)


class ChainVerifier:
    """
    Verifies deposit claims against the chain.

    Usage:
        verifier = ChainVerifier()
        result = await verifier.verify(signature, Decimal("2.0"), Currency.SOL)
        if not result.verified:
            raise VerificationFailedError(details={"reason": result.reason})
    """

    def __init__(
        self,
        rpc_client: Optional[SolanaRpcClient] = None,
        platform_wallet: Optional[str] = None,
        token_mints: Optional[Dict[Currency, str]] = None,
        lamport_tolerance: Optional[int] = None,
        token_tolerance: Optional[Decimal] = None,
    ):
        self.rpc_client = rpc_client or SolanaRpcClient()
        self.platform_wallet = platform_wallet or settings.PLATFORM_WALLET
        self.token_mints = token_mints or {
            Currency.USDC: settings.USDC_MINT,
            Currency.USDT: settings.USDT_MINT,
        }
        self.lamport_tolerance = (
            lamport_tolerance if lamport_tolerance is not None else settings.SOL_LAMPORT_TOLERANCE
        )
        self.token_tolerance = token_tolerance if token_tolerance is not None else settings.TOKEN_AMOUNT_TOLERANCE

    async def verify(
        self,
        signature: str,
        amount: Any,
        currency: Any,
        expected_recipient: Optional[str] = None,
    ) -> VerificationResult:
        """
        Verify a deposit claim.

        Args:
            signature: On-chain transaction signature
            amount: Claimed amount in whole units (SOL, USDC, USDT)
            currency: Claimed currency
            expected_recipient: Wallet that must receive the funds
                (defaults to the platform wallet)

        Returns:
            VerificationResult

        Raises:
            ValidationError: unsupported currency or non-positive amount
        """
        currency = Currency.parse(currency)
        amount = require_positive(amount)
        recipient = expected_recipient or self.platform_wallet
        if not recipient:
            return VerificationResult.rejected("Platform wallet is not configured")

        try:
            tx = await self.rpc_client.get_transaction(signature)
        except ChainRpcError as e:
            return VerificationResult.rejected(f"RPC error: {e}")

        if not tx:
            return VerificationResult.rejected("Transaction not found on blockchain")

        meta = tx.get("meta") if isinstance(tx, dict) else None
        if not meta:
            return VerificationResult.rejected("Transaction metadata unavailable")
        if meta.get("err"):
            return VerificationResult.rejected("Transaction failed or not confirmed")

        try:
            if currency.is_native:
                result = self._verify_sol(tx, meta, recipient, amount)
            else:
                result = self._verify_token(meta, recipient, self.token_mints[currency], amount)
        except (KeyError, TypeError, ValueError, AttributeError, InvalidOperation) as e:
            logger.warning(f"Could not parse transaction {signature}: {e}")
            return VerificationResult.rejected("Transaction could not be parsed")

        if not result.verified:
            logger.warning(
                f"Verification failed for {signature}: expected {amount} {currency.value} "
                f"to {recipient} ({result.reason})"
            )
        return result

    # ==================== SOL ====================

    def _verify_sol(
        self,
        tx: Dict[str, Any],
        meta: Dict[str, Any],
        recipient: str,
        amount: Decimal,
    ) -> VerificationResult:
        expected = sol_to_lamports(amount)
        instructions = list(tx["transaction"]["message"].get("instructions") or [])
        for inner in meta.get("innerInstructions") or []:
            instructions.extend(inner.get("instructions") or [])

        seen: Optional[int] = None
        for lamports in self._system_transfers_to(instructions, recipient):
            if abs(lamports - expected) < self.lamport_tolerance:
                return VerificationResult(verified=True, received=Decimal(lamports) / Decimal(10**9))
            seen = lamports

        received = Decimal(seen) / Decimal(10**9) if seen is not None else None
        return VerificationResult.rejected("No matching SOL transfer to platform wallet", received)

    @staticmethod
    def _system_transfers_to(instructions: Iterable[Dict[str, Any]], recipient: str) -> List[int]:
        transfers = []
        for ix in instructions:
            parsed = ix.get("parsed")
            if ix.get("program") != SYSTEM_PROGRAM or not isinstance(parsed, dict):
                continue
            if parsed.get("type") != "transfer":
                continue
            info = parsed.get("info") or {}
            if info.get("destination") == recipient:
                transfers.append(int(info["lamports"]))
        return transfers

    # ==================== SPL tokens ====================

    def _verify_token(
        self,
        meta: Dict[str, Any],
        recipient: str,
        mint: str,
        amount: Decimal,
    ) -> VerificationResult:
        pre = self._token_balance(meta.get("preTokenBalances") or [], recipient, mint)
        post = self._token_balance(meta.get("postTokenBalances") or [], recipient, mint)
        received = post - pre

        if abs(received - amount) < self.token_tolerance:
            return VerificationResult(verified=True, received=received)
        return VerificationResult.rejected("Token balance change does not match claimed amount", received)

    @staticmethod
    def _token_balance(entries: Iterable[Dict[str, Any]], owner: str, mint: str) -> Decimal:
        total = Decimal("0")
        for entry in entries:
            if entry.get("owner") != owner or entry.get("mint") != mint:
                continue
            ui = entry.get("uiTokenAmount") or {}
            if ui.get("uiAmountString") is not None:
                total += Decimal(ui["uiAmountString"])
            else:
                total += Decimal(ui["amount"]) / (Decimal(10) ** int(ui["decimals"]))
        return total
