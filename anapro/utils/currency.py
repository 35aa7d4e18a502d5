"""
Currency Definitions

The platform books exactly three assets. SOL is the chain's native asset,
USDC and USDT are SPL tokens identified by their mint address.
"""
import enum
from decimal import Decimal, InvalidOperation
from typing import Any

from anapro.utils.exceptions import UnsupportedCurrencyError, ValidationError


LAMPORTS_PER_SOL = 1_000_000_000

# Scale of every NUMERIC(20, 8) amount column
AMOUNT_QUANTUM = Decimal("0.00000001")


class Currency(str, enum.Enum):
    """Supported ledger currencies."""
    SOL = "SOL"
    USDC = "USDC"
    USDT = "USDT"

    @property
    def is_native(self) -> bool:
        return self is Currency.SOL

    @classmethod
    def parse(cls, value: Any) -> "Currency":
        """Resolve a user supplied currency code, rejecting anything else."""
        if isinstance(value, Currency):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise UnsupportedCurrencyError(value)


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a request value to Decimal without going through float.

    Raises:
        ValidationError: if the value is not a finite number
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(f"Invalid {field}: {value!r}")
    if not result.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}")
    return result


def require_positive(value: Any, field: str = "amount") -> Decimal:
    """Decimal conversion that also rejects zero and negatives."""
    amount = to_decimal(value, field)
    if amount <= 0:
        raise ValidationError(f"{field.capitalize()} must be positive", details={field: str(amount)})
    return amount


def quantize_amount(value: Decimal) -> Decimal:
    """Round to the storage scale of the amount columns."""
    return value.quantize(AMOUNT_QUANTUM)


def sol_to_lamports(amount: Decimal) -> int:
    """Convert SOL to lamports, rounding half-even like the RPC's own display."""
    return int((amount * LAMPORTS_PER_SOL).to_integral_value())
