"""
AnaPro Platform - Deposit Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.core.chain.verifier import ChainVerifier
from anapro.core.ledger.deposits import DepositService
from anapro.dependencies import get_chain_verifier, get_db
from anapro.schemas.deposit import DepositVerifyRequest, DepositVerifyResponse
from anapro.schemas.transaction import TransactionRead
from anapro.utils.exceptions import ValidationError

router = APIRouter()


@router.post(
    "/verify",
    response_model=DepositVerifyResponse,
    summary="Verify an on-chain deposit",
    description="Check the transfer on chain and credit it. A signature is only ever credited once."
)
async def verify_deposit(
    payload: DepositVerifyRequest,
    db: AsyncSession = Depends(get_db),
    verifier: ChainVerifier = Depends(get_chain_verifier)
) -> DepositVerifyResponse:
    """
    Verify and credit a deposit.

    - **txSignature**: Signature of the transfer to the platform wallet
    - **walletAddress**: Wallet to credit
    - **amount** / **currency**: Claimed transfer
    - **transactionId**: Optional pending deposit record to complete
    """
    if not payload.tx_signature or not payload.wallet_address or payload.amount is None or not payload.currency:
        raise ValidationError("Missing required fields")

    record = await DepositService(db, verifier).verify_deposit(
        tx_signature=payload.tx_signature,
        wallet_address=payload.wallet_address,
        amount=payload.amount,
        currency=payload.currency,
        user_id=payload.user_id,
        transaction_id=payload.transaction_id,
    )
    return DepositVerifyResponse(transaction=TransactionRead.from_record(record))
