"""
Solana JSON-RPC Client

Thin async wrapper over the ``getTransaction`` call used for deposit
verification. Transport failures, RPC errors and timeouts surface as
ChainRpcError so callers can fail closed.
"""
import itertools
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from anapro.config import settings


class ChainRpcError(Exception):
    """RPC endpoint unreachable, timed out or returned an error object."""


class SolanaRpcClient:
    """
    Solana RPC client.

    Usage:
        client = SolanaRpcClient()
        tx = await client.get_transaction(signature)
        if tx is None:
            ...  # not found or not yet confirmed
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        timeout: Optional[float] = None,
        commitment: str = "confirmed",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rpc_url = rpc_url or settings.SOLANA_RPC_URL
        self.timeout = timeout if timeout is not None else settings.SOLANA_RPC_TIMEOUT_SECONDS
        self.commitment = commitment
        self._transport = transport
        self._ids = itertools.count(1)

    async def _call(self, method: str, params: list) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Solana RPC {method} timed out after {self.timeout}s")
            raise ChainRpcError(f"{method} timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"Solana RPC {method} failed: {e}")
            raise ChainRpcError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise ChainRpcError(f"{method} returned invalid JSON") from e

        if not isinstance(body, dict):
            raise ChainRpcError(f"{method} returned an unexpected payload")
        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            logger.warning(f"Solana RPC {method} error: {message}")
            raise ChainRpcError(f"{method} error: {message}")
        return body.get("result")

    async def get_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a confirmed transaction with parsed instructions.

        Args:
            signature: Base58 transaction signature

        Returns:
            The transaction object, or None if the cluster does not know it
        """
        return await self._call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "commitment": self.commitment,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )
