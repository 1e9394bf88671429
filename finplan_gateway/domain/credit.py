"""Credit heuristics - estimated score, rating bands and revolving utilization"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence

from finplan_gateway.domain.exceptions import InvalidInputError
from finplan_gateway.domain.models import (
    AccountUtilization,
    CreditAccount,
    CreditFactor,
    CreditFactors,
    CreditScore,
    CreditUtilization,
    Debt,
    DebtType,
)

MIN_SCORE = 300
MAX_SCORE = 850

# Weight table: each component is a share of the 850 ceiling
SCORE_CEILING = Decimal(850)
PAYMENT_HISTORY_WEIGHT = Decimal("0.35")
UTILIZATION_WEIGHT = Decimal("0.30")
ACCOUNT_AGE_WEIGHT = Decimal("0.15")
CREDIT_MIX_WEIGHT = Decimal("0.10")
ACCOUNT_AGE_SATURATION_MONTHS = 120
CREDIT_MIX_SATURATION_ACCOUNTS = 5
INQUIRY_PENALTY = 10
INQUIRY_PENALTY_CAP = 85
DEROGATORY_PENALTY = 50
MAX_CREDIT_UTILIZATION = 100  # ratio, i.e. 10,000% of limits


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _dec(value: float) -> Decimal:
    # str() keeps 0.97 as 0.97 instead of its binary expansion
    return Decimal(str(value))


def get_credit_rating(score: int) -> str:
    """
    Map a score onto rating bands.

    - 800+:     excellent
    - 700-799:  good
    - 650-699:  fair
    - 550-649:  poor
    - below:    very_poor
    """
    if score >= 800:
        return "excellent"
    elif score >= 700:
        return "good"
    elif score >= 650:
        return "fair"
    elif score >= 550:
        return "poor"
    else:
        return "very_poor"


def _validate_factors(data: CreditFactors) -> None:
    if not math.isfinite(data.credit_utilization) or not math.isfinite(data.payment_history):
        raise InvalidInputError("credit_utilization and payment_history must be finite numbers")
    if data.credit_utilization < 0:
        raise InvalidInputError("credit_utilization must be non-negative")
    if data.credit_utilization > MAX_CREDIT_UTILIZATION:
        raise InvalidInputError(f"credit_utilization must not exceed {MAX_CREDIT_UTILIZATION}")
    if not 0 <= data.payment_history <= 1:
        raise InvalidInputError("payment_history must be between 0 and 1")
    for name in ("account_age", "account_count", "hard_inquiries", "derogatories_count"):
        if getattr(data, name) < 0:
            raise InvalidInputError(f"{name} must be non-negative")


def estimate_credit_score(data: CreditFactors) -> CreditScore:
    """
    Estimate a 300-850 score from a small weighted-factor model.

    This is an illustrative heuristic, not a bureau (FICO/VantageScore) model.

    Scoring weights (each rounded half-up to whole points):
    - Payment history: paymentHistory * 850 * 0.35
    - Utilization:     (1 - min(1, 2 * utilization)) * 850 * 0.30, so 50%+ used scores nothing
    - Account age:     min(1, months / 120) * 850 * 0.15
    - Credit mix:      min(1, accounts / 5) * 850 * 0.10
    - Inquiries:       -min(10 * inquiries, 85)
    - Derogatories:    -50 each

    Base is 300 and the total is clamped to [300, 850].
    """
    _validate_factors(data)

    factors: List[CreditFactor] = []
    score = MIN_SCORE

    payment_history = _dec(data.payment_history)
    score += _round_half_up(payment_history * SCORE_CEILING * PAYMENT_HISTORY_WEIGHT)
    if data.payment_history > 0.95:
        status = "positive"
    elif data.payment_history > 0.8:
        status = "neutral"
    else:
        status = "negative"
    factors.append(
        CreditFactor(
            name="Payment History",
            impact="high",
            status=status,
            description=f"{_round_half_up(payment_history * 100)}% on-time payments",
            recommendation="Set up autopay to never miss a payment" if data.payment_history < 0.95 else None,
        )
    )

    utilization = _dec(data.credit_utilization)
    utilization_share = 1 - min(Decimal(1), utilization * 2)
    score += _round_half_up(utilization_share * SCORE_CEILING * UTILIZATION_WEIGHT)
    if data.credit_utilization < 0.3:
        status = "positive"
    elif data.credit_utilization < 0.5:
        status = "neutral"
    else:
        status = "negative"
    factors.append(
        CreditFactor(
            name="Credit Utilization",
            impact="high",
            status=status,
            description=f"{_round_half_up(utilization * 100)}% of credit used",
            recommendation="Try to keep utilization below 30%" if data.credit_utilization > 0.3 else None,
        )
    )

    age_share = min(Decimal(1), Decimal(data.account_age) / ACCOUNT_AGE_SATURATION_MONTHS)
    score += _round_half_up(age_share * SCORE_CEILING * ACCOUNT_AGE_WEIGHT)
    if data.account_age > 60:
        status = "positive"
    elif data.account_age > 24:
        status = "neutral"
    else:
        status = "negative"
    factors.append(
        CreditFactor(
            name="Credit Age",
            impact="medium",
            status=status,
            description=f"Average account age: {data.account_age // 12} years {data.account_age % 12} months",
        )
    )

    mix_share = min(Decimal(1), Decimal(data.account_count) / CREDIT_MIX_SATURATION_ACCOUNTS)
    score += _round_half_up(mix_share * SCORE_CEILING * CREDIT_MIX_WEIGHT)
    factors.append(
        CreditFactor(
            name="Credit Mix",
            impact="low",
            status="positive" if data.account_count >= 3 else "neutral",
            description=f"{data.account_count} credit accounts",
        )
    )

    score -= min(data.hard_inquiries * INQUIRY_PENALTY, INQUIRY_PENALTY_CAP)
    if data.hard_inquiries > 2:
        factors.append(
            CreditFactor(
                name="Recent Inquiries",
                impact="low",
                status="negative",
                description=f"{data.hard_inquiries} hard inquiries in last 12 months",
                recommendation="Avoid applying for new credit for a few months",
            )
        )

    if data.derogatories_count > 0:
        score -= data.derogatories_count * DEROGATORY_PENALTY
        factors.append(
            CreditFactor(
                name="Derogatory Marks",
                impact="high",
                status="negative",
                description=f"{data.derogatories_count} negative marks on record",
                recommendation="Consider disputing any errors on your credit report",
            )
        )

    score = max(MIN_SCORE, min(MAX_SCORE, score))

    return CreditScore(score=score, rating=get_credit_rating(score), factors=factors)


def _utilization_health(overall: float) -> tuple[str, str]:
    """
    Thresholds:
    - under 10%: excellent
    - under 30%: good (the usual target for scores)
    - under 50%: fair
    - otherwise: poor
    """
    if overall < 0.10:
        return "excellent", "Excellent credit utilization! Keep it up."
    elif overall < 0.30:
        return "good", "Good utilization. Staying under 30% is ideal for credit scores."
    elif overall < 0.50:
        return "fair", "Consider paying down balances to get under 30% utilization."
    else:
        return "poor", "High utilization may hurt your credit score. Focus on paying down balances."


def calculate_credit_utilization(accounts: Sequence[CreditAccount]) -> CreditUtilization:
    """
    Aggregate revolving utilization: sum(balance) / sum(credit_limit).

    Accounts without a positive credit limit are left out of both sums.
    Returns 0 overall when no account has limit data. Per-account ratios
    keep the input order.
    """
    revolving = [a for a in accounts if a.credit_limit is not None and a.credit_limit > 0]

    if not revolving:
        return CreditUtilization(
            overall=0.0,
            by_account=[],
            health_status="excellent",
            recommendation="No credit accounts found",
        )

    total_balance = sum((abs(a.balance) for a in revolving), Decimal(0))
    total_limit = sum((a.credit_limit for a in revolving), Decimal(0))
    overall = float(total_balance / total_limit)

    by_account = [
        AccountUtilization(
            account_id=a.id,
            account_name=a.name,
            balance=abs(a.balance),
            limit=a.credit_limit,
            utilization=float(abs(a.balance) / a.credit_limit),
        )
        for a in revolving
    ]

    health_status, recommendation = _utilization_health(overall)

    high_utilization = [a for a in by_account if a.utilization > 0.5]
    if high_utilization:
        recommendation += f" {len(high_utilization)} account(s) have over 50% utilization."

    return CreditUtilization(
        overall=overall,
        by_account=by_account,
        health_status=health_status,
        recommendation=recommendation,
    )


def utilization_from_debts(debts: Sequence[Debt]) -> CreditUtilization:
    """Utilization over the credit_card debts that carry a credit limit"""
    return calculate_credit_utilization(
        [
            CreditAccount(balance=d.balance, credit_limit=d.credit_limit, id=d.id, name=d.name)
            for d in debts
            if d.type == DebtType.CREDIT_CARD
        ]
    )
