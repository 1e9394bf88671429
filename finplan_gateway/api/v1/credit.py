"""POST /v1/credit/* - debt payoff strategies, credit score estimate and utilization"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from finplan_gateway.api.v1.schemas import (
    AccountUtilizationSchema,
    ComparisonSchema,
    CreditFactorSchema,
    CreditFactorsRequest,
    CreditScoreResponse,
    DebtActionRequest,
    DebtActionResponse,
    StrategySchema,
    UtilizationRequest,
    UtilizationResponse,
)
from finplan_gateway.api.dependencies import get_payoff_max_months, get_request_id
from finplan_gateway.domain.credit import calculate_credit_utilization, estimate_credit_score
from finplan_gateway.domain.exceptions import (
    InsufficientBudgetError,
    InvalidInputError,
    PayoffNotConvergingError,
    UnknownStrategyError,
)
from finplan_gateway.domain.models import CreditAccount, CreditFactors, PayoffMethod
from finplan_gateway.domain.payoff import compare_strategies, debt_freedom_date, simulate_payoff
from finplan_gateway.infrastructure.observability.logging import log_payoff_computed
from finplan_gateway.infrastructure.observability.metrics import record_domain_error, record_payoff

router = APIRouter()

DEBT_ACTIONS = ("payoff-avalanche", "payoff-snowball", "compare", "freedom-date")


@router.post("/credit/debts", response_model=DebtActionResponse, response_model_exclude_none=True)
def run_debt_action(
    request_body: DebtActionRequest,
    request: Request,
    max_months: int = Depends(get_payoff_max_months),
):
    """
    Run a debt strategy computation selected by `action`.

    - payoff-avalanche / payoff-snowball: one schedule
    - compare: both schedules plus interest and months saved
    - freedom-date: projected zero-debt date for `method` (default avalanche)

    InsufficientBudget, PayoffNotConverging, UnknownStrategy and invalid
    debts map to 400.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    action = request_body.action

    try:
        debts = [d.to_domain() for d in request_body.debts]
        budget = request_body.monthly_budget

        if action == "payoff-avalanche":
            strategy = simulate_payoff(debts, budget, PayoffMethod.AVALANCHE, max_months)
            response = DebtActionResponse(strategy=StrategySchema.from_domain(strategy))
        elif action == "payoff-snowball":
            strategy = simulate_payoff(debts, budget, PayoffMethod.SNOWBALL, max_months)
            response = DebtActionResponse(strategy=StrategySchema.from_domain(strategy))
        elif action == "compare":
            comparison = compare_strategies(debts, budget, max_months)
            strategy = comparison.avalanche
            response = DebtActionResponse(
                comparison=ComparisonSchema(
                    avalanche=StrategySchema.from_domain(comparison.avalanche),
                    snowball=StrategySchema.from_domain(comparison.snowball),
                    interest_saved=float(comparison.interest_saved),
                    months_saved=comparison.months_saved,
                )
            )
        elif action == "freedom-date":
            freedom = debt_freedom_date(debts, budget, request_body.method or PayoffMethod.AVALANCHE, max_months=max_months)
            strategy = freedom.strategy
            response = DebtActionResponse(
                freedom_date=freedom.date,
                strategy=StrategySchema.from_domain(freedom.strategy),
            )
        else:
            raise UnknownStrategyError(f"Invalid action '{action}'. Use: {', '.join(DEBT_ACTIONS)}")

    except (InvalidInputError, InsufficientBudgetError, PayoffNotConvergingError, UnknownStrategyError) as e:
        record_domain_error(action, e)
        logging.warning(f"Debt action rejected: {e}", extra={"request_id": request_id, "action": action})
        raise HTTPException(status_code=400, detail=str(e))

    duration_ms = (time.time() - start_time) * 1000
    record_payoff(action, strategy.total_months)
    log_payoff_computed(
        request_id,
        action,
        strategy.total_months,
        float(strategy.total_interest),
        len(request_body.debts),
        duration_ms,
    )

    return response


@router.post("/credit/score", response_model=CreditScoreResponse)
def estimate_score(request_body: CreditFactorsRequest, request: Request):
    """Estimated 300-850 score with a factor breakdown (heuristic, not a bureau score)"""
    try:
        result = estimate_credit_score(
            CreditFactors(
                credit_utilization=request_body.credit_utilization,
                payment_history=request_body.payment_history,
                account_age=request_body.account_age,
                account_count=request_body.account_count,
                hard_inquiries=request_body.hard_inquiries,
                derogatories_count=request_body.derogatories_count,
            )
        )
    except InvalidInputError as e:
        logging.warning(f"Credit score rejected: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=400, detail=str(e))

    return CreditScoreResponse(
        score=result.score,
        rating=result.rating,
        source=result.source,
        factors=[
            CreditFactorSchema(
                name=f.name,
                impact=f.impact,
                status=f.status,
                description=f.description,
                recommendation=f.recommendation,
            )
            for f in result.factors
        ],
    )


@router.post("/credit/utilization", response_model=UtilizationResponse)
def credit_utilization(request_body: UtilizationRequest):
    """Aggregate and per-account revolving utilization as 0-1 ratios"""
    result = calculate_credit_utilization(
        [
            CreditAccount(balance=a.balance, credit_limit=a.credit_limit, id=a.id, name=a.name)
            for a in request_body.accounts
        ]
    )

    return UtilizationResponse(
        overall=result.overall,
        by_account=[
            AccountUtilizationSchema(
                account_id=a.account_id,
                account_name=a.account_name,
                balance=float(a.balance),
                limit=float(a.limit),
                utilization=a.utilization,
            )
            for a in result.by_account
        ],
        health_status=result.health_status,
        recommendation=result.recommendation,
    )
