"""
Investment Plans Configuration

Defines the four fixed-term plans (Starter, Growth, Professional, Elite)
with their daily return, duration and principal bounds.
"""
from dataclasses import dataclass, field
from decimal import Decimal

from anapro.utils.exceptions import ValidationError


@dataclass(frozen=True)
class InvestmentPlan:
    """A fixed-term plan offered to users."""
    id: str
    name: str
    daily_return: Decimal        # percent per day
    duration_days: int
    min_investment: Decimal
    max_investment: Decimal
    features: tuple = field(default_factory=tuple)

    @property
    def total_return(self) -> Decimal:
        """Total return over the term, in percent."""
        return self.daily_return * self.duration_days

    def expected_profit(self, amount: Decimal) -> Decimal:
        """Profit paid over the full term for a given principal."""
        return amount * self.daily_return / Decimal("100") * self.duration_days

    def accepts(self, amount: Decimal) -> bool:
        return self.min_investment <= amount <= self.max_investment


STARTER_PLAN = InvestmentPlan(
    id="starter",
    name="Starter Plan",
    daily_return=Decimal("1.5"),
    duration_days=30,
    min_investment=Decimal("1000"),
    max_investment=Decimal("1500"),
    features=(
        "Daily returns of 1.5%",
        "30-day investment period",
        "Basic analytics dashboard",
    ),
)

GROWTH_PLAN = InvestmentPlan(
    id="growth",
    name="Growth Plan",
    daily_return=Decimal("2.0"),
    duration_days=45,
    min_investment=Decimal("2000"),
    max_investment=Decimal("4500"),
    features=(
        "Daily returns of 2.0%",
        "45-day investment period",
        "Priority support",
    ),
)

PROFESSIONAL_PLAN = InvestmentPlan(
    id="professional",
    name="Professional Plan",
    daily_return=Decimal("2.5"),
    duration_days=60,
    min_investment=Decimal("5000"),
    max_investment=Decimal("15000"),
    features=(
        "Daily returns of 2.5%",
        "60-day investment period",
        "Dedicated account manager",
    ),
)

ELITE_PLAN = InvestmentPlan(
    id="elite",
    name="Elite Plan",
    daily_return=Decimal("3.0"),
    duration_days=90,
    min_investment=Decimal("20000"),
    max_investment=Decimal("999999"),
    features=(
        "Daily returns of 3.0%",
        "90-day investment period",
        "VIP support 24/7",
    ),
)


# ==================== Plan Registry ====================

INVESTMENT_PLANS: dict[str, InvestmentPlan] = {
    plan.id: plan for plan in (STARTER_PLAN, GROWTH_PLAN, PROFESSIONAL_PLAN, ELITE_PLAN)
}


def get_plan(plan_name: str) -> InvestmentPlan:
    """
    Get a plan by id ("starter") or display name ("Starter Plan").

    Args:
        plan_name: Plan id or name, case-insensitive

    Returns:
        The corresponding InvestmentPlan

    Raises:
        ValidationError: If the plan is not recognized
    """
    key = (plan_name or "").strip().lower()
    if key.endswith(" plan"):
        key = key[: -len(" plan")]
    if key not in INVESTMENT_PLANS:
        raise ValidationError(
            f"Unknown investment plan: {plan_name}",
            details={"valid_plans": list(INVESTMENT_PLANS.keys())},
        )
    return INVESTMENT_PLANS[key]


def get_all_plans() -> list[InvestmentPlan]:
    """Get all plans, smallest first."""
    return list(INVESTMENT_PLANS.values())
