"""
AnaPro Platform - Custom Exceptions
Application-specific exceptions with HTTP status mapping
"""
from typing import Optional, Any, Dict
from fastapi import status


class AnaProException(Exception):
    """Base exception for AnaPro Platform."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str = "An error occurred",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.code:
            body["code"] = self.code
        if self.details:
            body["details"] = self.details
        return body


# =========================
# Validation Exceptions
# =========================

class ValidationError(AnaProException):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid request", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="VALIDATION_ERROR", details=details)


class UnsupportedCurrencyError(ValidationError):
    """Currency outside the SOL/USDC/USDT set."""

    def __init__(self, currency: Any = ""):
        super().__init__(
            message=f"Unsupported currency: {currency}",
            details={"currency": str(currency)}
        )
        self.code = "UNSUPPORTED_CURRENCY"


# =========================
# Authentication Exceptions
# =========================

class AuthError(AnaProException):
    """Authentication related errors."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", code: str = "UNAUTHORIZED"):
        super().__init__(message=message, code=code)


class InvalidSignatureError(AuthError):
    """Wallet signature did not verify."""

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message=message, code="INVALID_SIGNATURE")


class SessionExpiredError(AuthError):
    """Session is expired, revoked or unknown."""

    def __init__(self, message: str = "Session expired or inactive"):
        super().__init__(message=message, code="SESSION_EXPIRED")


class PermissionDeniedError(AnaProException):
    """Authenticated but not allowed."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message=message, code="PERMISSION_DENIED")


# =========================
# Ledger Exceptions
# =========================

class LedgerError(AnaProException):
    """Balance ledger related errors."""

    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientBalanceError(LedgerError):
    """Available balance does not cover the requested amount."""

    def __init__(self, currency: Any = "", required: Any = None, available: Any = None):
        super().__init__(
            message="Insufficient balance",
            code="INSUFFICIENT_BALANCE",
            details={
                "currency": str(currency),
                "required": str(required) if required is not None else None,
                "available": str(available) if available is not None else None,
            }
        )


class InvalidStateTransitionError(LedgerError):
    """Requested lifecycle transition is not allowed."""

    def __init__(self, message: str = "Invalid state transition", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_STATE_TRANSITION", details=details)


# =========================
# Deposit Exceptions
# =========================

class VerificationFailedError(AnaProException):
    """On-chain proof did not match the claimed deposit."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str = "Payment verification failed. Could not find matching transfer to platform wallet.",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message=message, code="VERIFICATION_FAILED", details=details)


class ReplayDetectedError(AnaProException):
    """Signature has already been credited."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Transaction already processed"):
        super().__init__(message=message, code="REPLAY_DETECTED")


# =========================
# Lookup Exceptions
# =========================

class NotFoundError(AnaProException):
    """Unknown user, session or resource."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message=message, code="NOT_FOUND")


class InternalError(AnaProException):
    """Unexpected failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message=message, code="INTERNAL_ERROR")
