"""Unit tests for debt payoff simulation"""

import pytest
from datetime import date
from decimal import Decimal
from finplan_gateway.domain.models import Debt, PayoffMethod
from finplan_gateway.domain.payoff import (
    MAX_AMOUNT,
    MAX_INTEREST_RATE,
    avalanche_payoff,
    compare_strategies,
    debt_freedom_date,
    parse_strategy,
    simulate_payoff,
    snowball_payoff,
)
from finplan_gateway.domain.exceptions import (
    InsufficientBudgetError,
    InvalidInputError,
    PayoffNotConvergingError,
    UnknownStrategyError,
)


def _debt(debt_id: str, balance: str, rate: str, minimum: str) -> Debt:
    return Debt(
        id=debt_id,
        name=debt_id.title(),
        balance=Decimal(balance),
        interest_rate=Decimal(rate),
        minimum_payment=Decimal(minimum),
    )


def test_first_month_accrues_interest_before_payment():
    """Interest is added before the payment; minimum plus leftover budget goes to the debt"""
    strategy = avalanche_payoff([_debt("a", "1000", "12", "50")], Decimal("150"))

    first = strategy.entries[0]
    assert first.month == 1
    assert first.interest == Decimal("10.00")  # 1000 * 12% / 12
    assert first.payment == Decimal("150.00")
    assert first.principal == Decimal("140.00")
    assert first.balance == Decimal("860.00")


def test_leftover_rolls_to_next_debt_in_same_month():
    """Once the target debt hits zero, the remainder moves down the list that month"""
    debts = [_debt("small", "100", "0", "10"), _debt("large", "1000", "0", "20")]

    strategy = snowball_payoff(debts, Decimal("300"))

    month_one = {e.debt_id: e for e in strategy.entries if e.month == 1}
    assert month_one["small"].payment == Decimal("100")
    assert month_one["small"].balance == Decimal("0")
    # 20 minimum + 180 rolled over from the 270 left after minimums
    assert month_one["large"].payment == Decimal("200")
    assert month_one["large"].balance == Decimal("800")

    assert strategy.payoff_order == ["small", "large"]
    assert strategy.total_months == 4
    assert strategy.total_interest == Decimal("0")


def test_paid_off_debt_leaves_simulation():
    debts = [_debt("small", "100", "0", "10"), _debt("large", "1000", "0", "20")]

    strategy = snowball_payoff(debts, Decimal("300"))

    small_months = [e.month for e in strategy.entries if e.debt_id == "small"]
    assert small_months == [1]


def test_avalanche_costs_less_interest_than_snowball(sample_debts):
    """Avalanche targets the 24% card; snowball targets the small 6% loan"""
    avalanche = avalanche_payoff(sample_debts, Decimal("500"))
    snowball = snowball_payoff(sample_debts, Decimal("500"))

    assert avalanche.total_interest < snowball.total_interest
    assert avalanche.payoff_order[0] == "card"
    assert snowball.payoff_order[0] == "car"


def test_balances_never_negative_and_total_months_is_last_zero(sample_debts):
    for method in PayoffMethod:
        strategy = simulate_payoff(sample_debts, Decimal("500"), method)

        assert all(e.balance >= 0 for e in strategy.entries)

        last_month_by_debt = {}
        for e in strategy.entries:
            last_month_by_debt[e.debt_id] = e
        assert all(e.balance == 0 for e in last_month_by_debt.values())
        assert strategy.total_months == max(e.month for e in last_month_by_debt.values())
        assert sorted(strategy.payoff_order) == sorted(d.id for d in sample_debts)


def test_total_interest_matches_entries(sample_debts):
    strategy = avalanche_payoff(sample_debts, Decimal("400"))

    assert strategy.total_interest == sum(e.interest for e in strategy.entries)
    assert strategy.total_interest == sum(s.total_interest_paid for s in strategy.debt_summaries)


def test_simulation_is_deterministic(sample_debts):
    first = simulate_payoff(sample_debts, Decimal("450"), "snowball")
    second = simulate_payoff(sample_debts, Decimal("450"), "snowball")

    assert first == second


def test_avalanche_ties_break_on_smaller_balance():
    debts = [_debt("big", "2000", "10", "20"), _debt("little", "500", "10", "20")]

    strategy = avalanche_payoff(debts, Decimal("300"))

    assert strategy.payoff_order[0] == "little"


def test_zero_balance_debts_are_excluded():
    debts = [_debt("done", "0", "18", "25"), _debt("open", "100", "0", "10")]

    strategy = snowball_payoff(debts, Decimal("50"))

    assert {e.debt_id for e in strategy.entries} == {"open"}
    assert strategy.payoff_order == ["open"]
    assert strategy.total_months == 2


def test_insufficient_budget_raises(sample_debts):
    # Minimums total 175
    with pytest.raises(InsufficientBudgetError):
        avalanche_payoff(sample_debts, Decimal("174.99"))


def test_payments_that_never_cover_interest_do_not_converge():
    # 2% monthly interest on 10,000 is 200; only 100 is available
    with pytest.raises(PayoffNotConvergingError):
        avalanche_payoff([_debt("a", "10000", "24", "100")], Decimal("100"))


def test_runaway_interest_stops_before_decimal_overflow():
    # 400% APR on 100,000 with 1 a month grows ~33% monthly
    payday = Debt(id="payday", balance=Decimal("100000"), interest_rate=Decimal("400"), minimum_payment=Decimal("0"))

    with pytest.raises(PayoffNotConvergingError):
        avalanche_payoff([payday], Decimal("1"))


def test_month_cap_is_respected():
    with pytest.raises(PayoffNotConvergingError):
        simulate_payoff([_debt("a", "1000", "0", "100")], Decimal("100"), "avalanche", max_months=5)


def test_invalid_inputs_fail_fast():
    with pytest.raises(InvalidInputError):
        avalanche_payoff([], Decimal("100"))

    with pytest.raises(InvalidInputError):
        avalanche_payoff([_debt("a", "-1", "5", "10")], Decimal("100"))

    with pytest.raises(InvalidInputError):
        avalanche_payoff([_debt("a", "100", "5", "10"), _debt("a", "200", "5", "10")], Decimal("100"))

    with pytest.raises(InvalidInputError):
        avalanche_payoff([_debt("a", "100", "5", "10")], Decimal("0"))


@pytest.mark.parametrize(
    "debt, budget",
    [
        (_debt("big", "1e26", "5", "10"), "100"),
        (_debt("big", str(MAX_AMOUNT + 1), "5", "10"), "100"),
        (_debt("a", "100", str(MAX_INTEREST_RATE + 1), "10"), "100"),
        (_debt("a", "100", "5", "10"), "1e30"),
    ],
)
def test_out_of_range_amounts_rejected(debt, budget):
    with pytest.raises(InvalidInputError):
        avalanche_payoff([debt], Decimal(budget))


def test_sub_cent_balance_counts_as_paid_off():
    strategy = avalanche_payoff([_debt("dust", "0.001", "5", "0"), _debt("a", "100", "0", "10")], Decimal("50"))

    assert strategy.payoff_order == ["a"]
    assert strategy.total_months == 2


def test_compare_strategies_reports_savings(sample_debts):
    comparison = compare_strategies(sample_debts, Decimal("500"))

    assert comparison.avalanche.method == PayoffMethod.AVALANCHE
    assert comparison.snowball.method == PayoffMethod.SNOWBALL
    assert comparison.interest_saved == comparison.snowball.total_interest - comparison.avalanche.total_interest
    assert comparison.interest_saved > 0
    assert comparison.months_saved == comparison.snowball.total_months - comparison.avalanche.total_months


def test_freedom_date_adds_total_months():
    debts = [_debt("small", "100", "0", "10"), _debt("large", "1000", "0", "20")]

    freedom = debt_freedom_date(debts, Decimal("300"), "snowball", today=date(2024, 1, 31))

    assert freedom.strategy.total_months == 4
    assert freedom.date == date(2024, 5, 31)


def test_freedom_date_unknown_strategy():
    with pytest.raises(UnknownStrategyError):
        debt_freedom_date([_debt("a", "100", "0", "10")], Decimal("50"), "hybrid")


def test_parse_strategy():
    assert parse_strategy("Avalanche") == PayoffMethod.AVALANCHE
    assert parse_strategy(PayoffMethod.SNOWBALL) == PayoffMethod.SNOWBALL
    with pytest.raises(UnknownStrategyError):
        parse_strategy("custom")
