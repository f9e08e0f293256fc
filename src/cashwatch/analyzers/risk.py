"""
Risk Classifier — one canonical safe / warn / danger policy.

Rules are evaluated in priority order, first match wins:

1. **danger** — the balance is already negative, or the projection runs short
   within ``policy.danger_months``.
2. **warn** — a shortfall later in the horizon, a negative assumed net, a
   balance below ``reserve_multiple`` months of expense, or a balance below
   ``minimum_balance``.
3. **safe** — none of the above.

The :class:`RiskReason` tells the warn sub-cases apart ("will run out
eventually" vs. "thin margin").
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from cashwatch.analyzers.periods import month_label
from cashwatch.config import RiskPolicy
from cashwatch.models.financial import to_decimal

if TYPE_CHECKING:
    from cashwatch.analyzers.estimator import AverageModel
    from cashwatch.analyzers.projector import ProjectionResult


class RiskLevel(str, Enum):
    SAFE = "safe"
    WARN = "warn"
    DANGER = "danger"


class RiskReason(str, Enum):
    NONE = "none"
    ALREADY_NEGATIVE = "already_negative"
    IMMINENT_SHORTFALL = "imminent_shortfall"
    EVENTUAL_SHORTFALL = "eventual_shortfall"
    NEGATIVE_TREND = "negative_trend"
    THIN_RESERVE = "thin_reserve"
    BELOW_MINIMUM = "below_minimum"


@dataclass(frozen=True)
class RiskAssessment:
    level: RiskLevel
    reason: RiskReason
    message: str
    shortfall_month: date | None = None


def classify(
    current_balance: Decimal | int | float,
    model: AverageModel,
    projection: ProjectionResult,
    policy: RiskPolicy | None = None,
) -> RiskAssessment:
    """Classify a projection.

    The assumed figures on ``projection`` (average plus any what-if deltas)
    drive the trend and reserve checks; ``model`` supplies the history context
    for the message.
    """
    policy = policy or RiskPolicy()
    current = to_decimal(current_balance)
    shortfall_i = projection.shortfall_index
    shortfall_m = projection.shortfall_month
    basis = f"{model.months_used}-month average"

    if current < 0:
        return RiskAssessment(
            RiskLevel.DANGER,
            RiskReason.ALREADY_NEGATIVE,
            "Cash position is already negative. Immediate action required.",
            shortfall_m,
        )

    if shortfall_i is not None and shortfall_m is not None:
        if shortfall_i <= policy.danger_months:
            return RiskAssessment(
                RiskLevel.DANGER,
                RiskReason.IMMINENT_SHORTFALL,
                f"Cash is projected to run short in {month_label(shortfall_m)}, "
                f"within {policy.danger_months} months ({basis}).",
                shortfall_m,
            )
        return RiskAssessment(
            RiskLevel.WARN,
            RiskReason.EVENTUAL_SHORTFALL,
            f"Not immediate, but cash runs short in {month_label(shortfall_m)} if nothing changes ({basis}).",
            shortfall_m,
        )

    if projection.assumed_net < 0:
        return RiskAssessment(
            RiskLevel.WARN,
            RiskReason.NEGATIVE_TREND,
            "Monthly net is negative and the balance is shrinking. Review fixed costs and seasonal spending.",
        )

    reserve = policy.reserve_multiple * projection.assumed_expense
    if projection.assumed_expense > 0 and current < reserve:
        return RiskAssessment(
            RiskLevel.WARN,
            RiskReason.THIN_RESERVE,
            f"Balance covers less than {policy.reserve_multiple} months of expenses.",
        )

    if policy.minimum_balance > 0 and current < policy.minimum_balance:
        return RiskAssessment(
            RiskLevel.WARN,
            RiskReason.BELOW_MINIMUM,
            f"Balance is below the minimum reserve of {policy.minimum_balance:,.0f}.",
        )

    return RiskAssessment(
        RiskLevel.SAFE,
        RiskReason.NONE,
        f"On the {basis}, the balance stays above zero for the next {projection.horizon_months} months.",
    )
