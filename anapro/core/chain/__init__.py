"""
AnaPro Platform - Chain Module

On-chain access used for deposit verification.
"""
from anapro.core.chain.rpc_client import SolanaRpcClient, ChainRpcError
from anapro.core.chain.verifier import ChainVerifier, VerificationResult

__all__ = [
    "SolanaRpcClient",
    "ChainRpcError",
    "ChainVerifier",
    "VerificationResult",
]
