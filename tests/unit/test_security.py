"""
Unit Tests - Core Security Module
Tests for wallet signatures, login challenges and session tokens.
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from jose import jwt
from solders.keypair import Keypair

from anapro.config import settings
from anapro.core.security import (
    SESSION_TOKEN_TYPE,
    build_auth_challenge,
    create_session_token,
    decode_token,
    is_valid_wallet_address,
    verify_session_token,
    verify_wallet_signature,
)


class TestWalletSignatures:
    """Tests for ed25519 wallet signature verification."""

    def test_valid_signature(self):
        keypair = Keypair()
        message = "hello anapro"
        signature = keypair.sign_message(message.encode("utf-8"))
        assert verify_wallet_signature(str(keypair.pubkey()), message, str(signature))

    def test_signature_over_other_message(self):
        keypair = Keypair()
        signature = keypair.sign_message(b"original")
        assert not verify_wallet_signature(str(keypair.pubkey()), "tampered", str(signature))

    def test_signature_from_other_wallet(self):
        signer, other = Keypair(), Keypair()
        signature = signer.sign_message(b"msg")
        assert not verify_wallet_signature(str(other.pubkey()), "msg", str(signature))

    @pytest.mark.parametrize("wallet, signature", [
        ("not-a-key", "1" * 88),
        (str(Keypair().pubkey()), "not-a-signature"),
    ])
    def test_malformed_inputs(self, wallet, signature):
        assert not verify_wallet_signature(wallet, "msg", signature)

    def test_wallet_address_validation(self):
        assert is_valid_wallet_address(str(Keypair().pubkey()))
        assert not is_valid_wallet_address("short")
        assert not is_valid_wallet_address("0OIl" * 10)
        assert not is_valid_wallet_address(None)


class TestChallenge:
    """Tests for login challenge messages."""

    def test_challenge_embeds_wallet_timestamp_nonce(self):
        wallet = str(Keypair().pubkey())
        challenge = build_auth_challenge(wallet, timestamp=1700000000000, nonce="abc")
        assert challenge["timestamp"] == 1700000000000
        assert challenge["nonce"] == "abc"
        assert f"Wallet: {wallet}" in challenge["message"]
        assert "Timestamp: 1700000000000" in challenge["message"]
        assert "Nonce: abc" in challenge["message"]

    def test_challenges_are_unique(self):
        wallet = str(Keypair().pubkey())
        assert build_auth_challenge(wallet)["nonce"] != build_auth_challenge(wallet)["nonce"]


class TestSessionTokens:
    """Tests for session JWTs."""

    def test_claims(self):
        token, jti, expires_at = create_session_token("user-1", "wallet-1", role="admin")
        payload = decode_token(token)
        assert payload["sub"] == "user-1"
        assert payload["wallet"] == "wallet-1"
        assert payload["role"] == "admin"
        assert payload["type"] == SESSION_TOKEN_TYPE
        assert payload["jti"] == jti
        assert expires_at.tzinfo is None

    def test_default_expiry_is_session_days(self):
        _, _, expires_at = create_session_token("user-1", "wallet-1")
        expected = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(days=settings.SESSION_EXPIRE_DAYS)
        assert abs((expires_at - expected).total_seconds()) < 5

    def test_valid_token_verifies(self):
        token, _, _ = create_session_token("user-1", "wallet-1")
        assert verify_session_token(token)["sub"] == "user-1"

    def test_expired_token_rejected(self):
        token, _, _ = create_session_token("user-1", "wallet-1", expires_delta=timedelta(seconds=-1))
        assert verify_session_token(token) is None

    def test_wrong_type_rejected(self):
        token = jwt.encode(
            {"sub": "user-1", "wallet": "w", "type": "refresh",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )
        assert verify_session_token(token) is None

    def test_foreign_secret_rejected(self):
        token, _, _ = create_session_token("user-1", "wallet-1")
        with patch.object(settings, "JWT_SECRET_KEY", "another-secret"):
            assert decode_token(token) is None

    @pytest.mark.parametrize("token", ["", "invalid.token.here", "a.b"])
    def test_garbage_rejected(self, token):
        assert verify_session_token(token) is None
