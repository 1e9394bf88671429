"""Debt payoff engine - avalanche and snowball schedules by month-by-month simulation"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from finplan_gateway.domain.exceptions import (
    InsufficientBudgetError,
    InvalidInputError,
    PayoffNotConvergingError,
    UnknownStrategyError,
)
from finplan_gateway.domain.models import (
    Debt,
    DebtPayoffSummary,
    FreedomDate,
    PayoffMethod,
    PayoffScheduleEntry,
    PayoffStrategy,
    StrategyComparison,
)
from finplan_gateway.utils.date_utils import add_months

CENT = Decimal("0.01")
ZERO = Decimal("0")
DEFAULT_MAX_MONTHS = 600  # 50 years

# Input ceilings keep every cent amount well inside the default decimal context
MAX_AMOUNT = Decimal("1000000000000")  # 1 trillion
MAX_INTEREST_RATE = Decimal("1000")  # percent APR

# Outstanding total this many times the starting total can never be paid down
DIVERGENCE_FACTOR = 1000


def to_cents(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def avalanche_priority(debt: Debt) -> Tuple[Decimal, Decimal, str]:
    """Highest rate first; ties by smaller balance, then id"""
    return (-debt.interest_rate, debt.balance, debt.id)


def snowball_priority(debt: Debt) -> Tuple[Decimal, Decimal, str]:
    """Smallest balance first; ties by higher rate, then id"""
    return (debt.balance, -debt.interest_rate, debt.id)


_PRIORITY: Dict[PayoffMethod, Callable[[Debt], Tuple[Decimal, Decimal, str]]] = {
    PayoffMethod.AVALANCHE: avalanche_priority,
    PayoffMethod.SNOWBALL: snowball_priority,
}


def parse_strategy(name: Union[str, PayoffMethod]) -> PayoffMethod:
    """Resolve a strategy name, raising UnknownStrategyError for anything else"""
    if isinstance(name, PayoffMethod):
        return name
    try:
        return PayoffMethod(str(name).strip().lower())
    except ValueError:
        raise UnknownStrategyError(
            f"Unknown payoff strategy '{name}'. Use: avalanche, snowball"
        ) from None


def validate_debts(debts: Sequence[Debt]) -> List[Debt]:
    """
    Reject malformed debts and return the ones still carrying a balance.

    Raises:
        InvalidInputError: empty list, duplicate/missing ids, negative amounts,
            amounts above MAX_AMOUNT or rates above MAX_INTEREST_RATE
    """
    if not debts:
        raise InvalidInputError("At least one debt is required")

    seen = set()
    for debt in debts:
        if not debt.id:
            raise InvalidInputError("Every debt needs an id")
        if debt.id in seen:
            raise InvalidInputError(f"Duplicate debt id '{debt.id}'")
        seen.add(debt.id)

        if debt.balance < 0:
            raise InvalidInputError(f"Debt '{debt.id}' has a negative balance")
        if debt.interest_rate < 0:
            raise InvalidInputError(f"Debt '{debt.id}' has a negative interest rate")
        if debt.minimum_payment < 0:
            raise InvalidInputError(f"Debt '{debt.id}' has a negative minimum payment")
        if debt.credit_limit is not None and debt.credit_limit < 0:
            raise InvalidInputError(f"Debt '{debt.id}' has a negative credit limit")

        if debt.balance > MAX_AMOUNT or debt.minimum_payment > MAX_AMOUNT:
            raise InvalidInputError(f"Debt '{debt.id}' exceeds the maximum amount of {MAX_AMOUNT}")
        if debt.credit_limit is not None and debt.credit_limit > MAX_AMOUNT:
            raise InvalidInputError(f"Debt '{debt.id}' credit limit exceeds {MAX_AMOUNT}")
        if debt.interest_rate > MAX_INTEREST_RATE:
            raise InvalidInputError(f"Debt '{debt.id}' interest rate exceeds {MAX_INTEREST_RATE}%")

    # Zero balance means already paid off
    return [d for d in debts if to_cents(d.balance) > 0]


def simulate_payoff(
    debts: Sequence[Debt],
    monthly_budget: Decimal,
    method: Union[str, PayoffMethod],
    max_months: int = DEFAULT_MAX_MONTHS,
) -> PayoffStrategy:
    """
    Simulate paying down every debt month by month under one ordering.

    Each month:
    1. Every open debt accrues balance * (rate/100)/12, rounded to the cent,
       and the interest is added to the balance before any payment
       (simple monthly compounding).
    2. Each debt receives its minimum payment, capped at what it owes.
    3. Whatever is left of the budget goes to the highest-priority open debt;
       once that debt hits zero the remainder rolls to the next one in the
       same month.

    The priority order is fixed from the starting balances and rates. A debt
    that reaches zero leaves the simulation, and its freed minimum stays in
    the budget for the others.

    Raises:
        InvalidInputError: malformed debts or a non-positive budget
        InsufficientBudgetError: budget below the sum of minimum payments
        PayoffNotConvergingError: balances remain after max_months, or the
            outstanding total grows past DIVERGENCE_FACTOR times its start
        UnknownStrategyError: method is not avalanche/snowball
    """
    method = parse_strategy(method)
    active = validate_debts(debts)

    if Decimal(monthly_budget) > MAX_AMOUNT:
        raise InvalidInputError(f"Monthly budget exceeds the maximum amount of {MAX_AMOUNT}")
    budget = to_cents(monthly_budget)
    if budget <= 0:
        raise InvalidInputError("Monthly budget must be greater than zero")
    if max_months < 1:
        raise InvalidInputError("max_months must be at least 1")

    minimum_total = sum((to_cents(d.minimum_payment) for d in active), ZERO)
    if budget < minimum_total:
        raise InsufficientBudgetError(
            f"Monthly budget {budget} does not cover minimum payments totalling {minimum_total}"
        )

    ordered = sorted(active, key=_PRIORITY[method])
    balances: Dict[str, Decimal] = {d.id: to_cents(d.balance) for d in ordered}
    minimums: Dict[str, Decimal] = {d.id: to_cents(d.minimum_payment) for d in ordered}
    interest_paid: Dict[str, Decimal] = {d.id: ZERO for d in ordered}
    payoff_month: Dict[str, int] = {}

    entries: List[PayoffScheduleEntry] = []
    payoff_order: List[str] = []
    ceiling = sum(balances.values(), ZERO) * DIVERGENCE_FACTOR
    month = 0

    while any(balances[d.id] > 0 for d in ordered):
        month += 1
        if month > max_months:
            outstanding = sum(balances.values(), ZERO)
            raise PayoffNotConvergingError(
                f"Debts not paid off after {max_months} months ({outstanding} still owed); "
                "payments may not cover accruing interest"
            )

        open_debts = [d for d in ordered if balances[d.id] > 0]
        interest: Dict[str, Decimal] = {}
        payments: Dict[str, Decimal] = {}

        for debt in open_debts:
            accrued = to_cents(balances[debt.id] * debt.interest_rate / 1200)
            interest[debt.id] = accrued
            balances[debt.id] += accrued

            payment = min(minimums[debt.id], balances[debt.id])
            payments[debt.id] = payment
            balances[debt.id] -= payment

        leftover = budget - sum(payments.values(), ZERO)
        for debt in open_debts:
            if leftover <= 0:
                break
            extra = min(leftover, balances[debt.id])
            payments[debt.id] += extra
            balances[debt.id] -= extra
            leftover -= extra

        outstanding = sum(balances.values(), ZERO)
        if outstanding > ceiling:
            raise PayoffNotConvergingError(
                f"Debts growing without bound ({outstanding} owed after {month} months); "
                "payments do not cover accruing interest"
            )

        for debt in open_debts:
            entries.append(
                PayoffScheduleEntry(
                    month=month,
                    debt_id=debt.id,
                    payment=payments[debt.id],
                    interest=interest[debt.id],
                    principal=payments[debt.id] - interest[debt.id],
                    balance=balances[debt.id],
                )
            )
            interest_paid[debt.id] += interest[debt.id]
            if balances[debt.id] == 0:
                payoff_order.append(debt.id)
                payoff_month[debt.id] = month

    summaries = [
        DebtPayoffSummary(
            debt_id=d.id,
            debt_name=d.name,
            starting_balance=to_cents(d.balance),
            payoff_month=payoff_month[d.id],
            total_interest_paid=interest_paid[d.id],
        )
        for d in sorted(ordered, key=lambda d: payoff_month[d.id])
    ]

    return PayoffStrategy(
        method=method,
        entries=entries,
        total_interest=sum(interest_paid.values(), ZERO),
        total_months=month,
        payoff_order=payoff_order,
        total_debt=sum((to_cents(d.balance) for d in active), ZERO),
        monthly_budget=budget,
        debt_summaries=summaries,
    )


def avalanche_payoff(debts: Sequence[Debt], monthly_budget: Decimal, max_months: int = DEFAULT_MAX_MONTHS) -> PayoffStrategy:
    """Payoff schedule prioritizing the highest interest rate first"""
    return simulate_payoff(debts, monthly_budget, PayoffMethod.AVALANCHE, max_months)


def snowball_payoff(debts: Sequence[Debt], monthly_budget: Decimal, max_months: int = DEFAULT_MAX_MONTHS) -> PayoffStrategy:
    """Payoff schedule prioritizing the smallest balance first"""
    return simulate_payoff(debts, monthly_budget, PayoffMethod.SNOWBALL, max_months)


def compare_strategies(
    debts: Sequence[Debt],
    monthly_budget: Decimal,
    max_months: int = DEFAULT_MAX_MONTHS,
) -> StrategyComparison:
    """
    Run both orderings over the same inputs.

    interest_saved and months_saved are snowball minus avalanche, so a
    negative value means snowball came out ahead. No winner is picked.
    """
    avalanche = avalanche_payoff(debts, monthly_budget, max_months)
    snowball = snowball_payoff(debts, monthly_budget, max_months)

    return StrategyComparison(
        avalanche=avalanche,
        snowball=snowball,
        interest_saved=snowball.total_interest - avalanche.total_interest,
        months_saved=snowball.total_months - avalanche.total_months,
    )


def debt_freedom_date(
    debts: Sequence[Debt],
    monthly_budget: Decimal,
    strategy_name: Union[str, PayoffMethod] = PayoffMethod.AVALANCHE,
    today: Optional[date] = None,
    max_months: int = DEFAULT_MAX_MONTHS,
) -> FreedomDate:
    """Date on which the chosen strategy reaches zero total debt (today + total_months)"""
    method = parse_strategy(strategy_name)
    strategy = simulate_payoff(debts, monthly_budget, method, max_months)

    if today is None:
        today = date.today()

    return FreedomDate(date=add_months(today, strategy.total_months), strategy=strategy)
