"""
AnaPro Platform - Security Module
Wallet signature verification, session JWTs, login challenges
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import time
import uuid

from jose import jwt, JWTError
from solders.pubkey import Pubkey
from solders.signature import Signature

from anapro.config import settings


SESSION_TOKEN_TYPE = "session"

CHALLENGE_TEMPLATE = """Welcome to AnaPro Platform!

Sign this message to authenticate your wallet.

Wallet: {wallet}
Timestamp: {timestamp}
Nonce: {nonce}

This request will not trigger a blockchain transaction or cost any gas fees."""


# =========================
# Wallet helpers
# =========================

def is_valid_wallet_address(value: str) -> bool:
    """
    Check that a string is a base58 ed25519 public key.

    Args:
        value: Candidate wallet address

    Returns:
        True if the address parses as a public key
    """
    if not isinstance(value, str) or not 32 <= len(value) <= 44:
        return False
    try:
        Pubkey.from_string(value)
    except ValueError:
        return False
    return True


def verify_wallet_signature(wallet_address: str, message: str, signature: str) -> bool:
    """
    Verify an ed25519 signature of a UTF-8 message by a wallet.

    Args:
        wallet_address: Base58 public key of the signer
        message: Exact message text that was signed
        signature: Base58 signature

    Returns:
        True if the signature is valid, False otherwise (including
        malformed keys or signatures)
    """
    try:
        pubkey = Pubkey.from_string(wallet_address)
        sig = Signature.from_string(signature)
    except ValueError:
        return False
    return sig.verify(pubkey, message.encode("utf-8"))


def build_auth_challenge(
    wallet_address: str,
    timestamp: Optional[int] = None,
    nonce: Optional[str] = None,
) -> dict:
    """
    Build the message a wallet signs to log in.

    Challenges are not stored; the nonce and timestamp only make each
    message unique.

    Returns:
        Dict with message, timestamp (ms) and nonce
    """
    timestamp = timestamp if timestamp is not None else int(time.time() * 1000)
    nonce = nonce or str(uuid.uuid4())
    message = CHALLENGE_TEMPLATE.format(wallet=wallet_address, timestamp=timestamp, nonce=nonce)
    return {"message": message, "timestamp": timestamp, "nonce": nonce}


# =========================
# Session tokens
# =========================

def create_session_token(
    subject: str | Any,
    wallet_address: str,
    role: str = "user",
    expires_delta: Optional[timedelta] = None,
    jti: Optional[str] = None
) -> tuple[str, str, datetime]:
    """
    Create a session JWT.

    Args:
        subject: The subject of the token (user id)
        wallet_address: Wallet bound to the session
        role: "user" or "admin"
        expires_delta: Optional custom expiration time
        jti: Optional JWT ID (auto-generated if not provided)

    Returns:
        Tuple of (encoded JWT, jti, naive UTC expiry)
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.SESSION_EXPIRE_DAYS))
    token_jti = jti or str(uuid.uuid4())

    to_encode = {
        "exp": expire,
        "iat": now,
        "sub": str(subject),
        "wallet": wallet_address,
        "role": role,
        "type": SESSION_TOKEN_TYPE,
        "jti": token_jti,
    }

    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )
    return encoded_jwt, token_jti, expire.replace(tzinfo=None)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token string to decode

    Returns:
        Decoded token payload as dict, or None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None


def verify_session_token(token: str) -> Optional[dict]:
    """
    Verify a session JWT and return its claims.

    Returns:
        Claims if the token is a valid, unexpired session token, None otherwise
    """
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != SESSION_TOKEN_TYPE:
        return None

    exp = payload.get("exp")
    if exp is None:
        return None
    if datetime.fromtimestamp(exp, tz=timezone.utc) < datetime.now(timezone.utc):
        return None

    if not payload.get("sub") or not payload.get("wallet"):
        return None
    return payload
