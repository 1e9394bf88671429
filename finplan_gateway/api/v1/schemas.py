"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finplan_gateway.domain import models
from finplan_gateway.domain.payoff import MAX_AMOUNT, MAX_INTEREST_RATE


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------- debts


class DebtSchema(CamelModel):
    """One debt as supplied by the persistence layer"""

    id: str = Field(..., min_length=1)
    name: str = ""
    lender: str = "Unknown"
    type: models.DebtType = models.DebtType.OTHER
    balance: Decimal = Field(..., ge=0, le=MAX_AMOUNT)
    credit_limit: Optional[Decimal] = Field(None, ge=0, le=MAX_AMOUNT)
    interest_rate: Decimal = Field(..., ge=0, le=MAX_INTEREST_RATE, description="Annual percentage, 19.99 == 19.99%")
    minimum_payment: Decimal = Field(..., ge=0, le=MAX_AMOUNT)
    due_date: int = Field(1, ge=1, le=31)

    def to_domain(self) -> models.Debt:
        return models.Debt(
            id=self.id,
            name=self.name,
            lender=self.lender,
            type=self.type,
            balance=self.balance,
            credit_limit=self.credit_limit,
            interest_rate=self.interest_rate,
            minimum_payment=self.minimum_payment,
            due_date=self.due_date,
        )


class DebtActionRequest(CamelModel):
    """Request body for POST /v1/credit/debts"""

    action: str = Field(..., description="payoff-avalanche | payoff-snowball | compare | freedom-date")
    debts: List[DebtSchema]
    monthly_budget: Decimal = Field(..., le=MAX_AMOUNT, description="Total monthly amount available across all debts")
    method: Optional[str] = Field(None, description="Strategy for freedom-date, defaults to avalanche")


class ScheduleEntrySchema(CamelModel):
    month: int
    debt_id: str
    payment: float
    interest: float
    principal: float
    balance: float


class DebtSummarySchema(CamelModel):
    debt_id: str
    debt_name: str
    starting_balance: float
    payoff_month: int
    total_interest_paid: float


class StrategySchema(CamelModel):
    name: str
    method: str
    total_debt: float
    total_interest: float
    total_months: int
    monthly_budget: float
    payoff_order: List[str]
    debts: List[DebtSummarySchema]
    schedule: List[ScheduleEntrySchema]

    @classmethod
    def from_domain(cls, strategy: models.PayoffStrategy) -> "StrategySchema":
        return cls(
            name=strategy.name,
            method=strategy.method.value,
            total_debt=float(strategy.total_debt),
            total_interest=float(strategy.total_interest),
            total_months=strategy.total_months,
            monthly_budget=float(strategy.monthly_budget),
            payoff_order=list(strategy.payoff_order),
            debts=[
                DebtSummarySchema(
                    debt_id=s.debt_id,
                    debt_name=s.debt_name,
                    starting_balance=float(s.starting_balance),
                    payoff_month=s.payoff_month,
                    total_interest_paid=float(s.total_interest_paid),
                )
                for s in strategy.debt_summaries
            ],
            schedule=[
                ScheduleEntrySchema(
                    month=e.month,
                    debt_id=e.debt_id,
                    payment=float(e.payment),
                    interest=float(e.interest),
                    principal=float(e.principal),
                    balance=float(e.balance),
                )
                for e in strategy.entries
            ],
        )


class ComparisonSchema(CamelModel):
    avalanche: StrategySchema
    snowball: StrategySchema
    interest_saved: float
    months_saved: int


class DebtActionResponse(CamelModel):
    """Response for POST /v1/credit/debts; which fields are set depends on the action"""

    strategy: Optional[StrategySchema] = None
    comparison: Optional[ComparisonSchema] = None
    freedom_date: Optional[date] = None


# ---------------------------------------------------------------- credit


class CreditFactorsRequest(CamelModel):
    """Request body for POST /v1/credit/score"""

    credit_utilization: float = Field(..., ge=0, le=100, description="Ratio, 0.25 == 25% used")
    payment_history: float = Field(..., ge=0, le=1)
    account_age: int = Field(..., ge=0, description="Months")
    account_count: int = Field(..., ge=0)
    hard_inquiries: int = Field(0, ge=0)
    derogatories_count: int = Field(0, ge=0)


class CreditFactorSchema(CamelModel):
    name: str
    impact: str
    status: str
    description: str
    recommendation: Optional[str] = None


class CreditScoreResponse(CamelModel):
    score: int
    rating: str
    source: str
    factors: List[CreditFactorSchema]


class CreditAccountSchema(CamelModel):
    id: str = ""
    name: str = ""
    balance: Decimal
    credit_limit: Optional[Decimal] = None


class UtilizationRequest(CamelModel):
    """Request body for POST /v1/credit/utilization"""

    accounts: List[CreditAccountSchema]


class AccountUtilizationSchema(CamelModel):
    account_id: str
    account_name: str
    balance: float
    limit: float
    utilization: float


class UtilizationResponse(CamelModel):
    overall: float
    by_account: List[AccountUtilizationSchema]
    health_status: str
    recommendation: str


# ---------------------------------------------------------------- households


class PermissionSchema(CamelModel):
    feature: str
    actions: List[models.Action]

    def to_domain(self) -> models.Permission:
        # Unrecognised feature names become UNKNOWN, which never matches a query
        return models.Permission(feature=models.Feature.parse(self.feature), actions=frozenset(self.actions))


class SpendingLimitsSchema(CamelModel):
    max_transaction_amount: Optional[Decimal] = Field(None, ge=0)
    require_approval_above: Optional[Decimal] = Field(None, ge=0)
    daily_spending_limit: Optional[Decimal] = Field(None, ge=0)


class MemberSchema(CamelModel):
    """Member snapshot supplied by the caller"""

    id: str
    household_id: str
    user_id: str
    role: models.HouseholdRole
    is_active: bool = True
    custom_permissions: Optional[List[PermissionSchema]] = None
    limits: Optional[SpendingLimitsSchema] = None
    name: str = ""
    email: str = ""

    def to_domain(self) -> models.HouseholdMember:
        custom = None
        if self.custom_permissions is not None:
            custom = tuple(p.to_domain() for p in self.custom_permissions)
        limits = None
        if self.limits is not None:
            limits = models.SpendingLimits(
                max_transaction_amount=self.limits.max_transaction_amount,
                require_approval_above=self.limits.require_approval_above,
                daily_spending_limit=self.limits.daily_spending_limit,
            )
        return models.HouseholdMember(
            id=self.id,
            household_id=self.household_id,
            user_id=self.user_id,
            role=self.role,
            is_active=self.is_active,
            custom_permissions=custom,
            limits=limits,
            name=self.name,
            email=self.email,
        )


class HouseholdSchema(CamelModel):
    id: str = ""
    name: str = ""
    require_approval_for_large_transactions: bool = False
    large_transaction_threshold: Decimal = Field(Decimal(0), ge=0)

    def to_domain(self) -> models.Household:
        return models.Household(
            id=self.id,
            name=self.name,
            require_approval_for_large_transactions=self.require_approval_for_large_transactions,
            large_transaction_threshold=self.large_transaction_threshold,
        )


class PermissionCheckRequest(CamelModel):
    member: MemberSchema
    feature: str
    action: str


class PermissionCheckResponse(CamelModel):
    allowed: bool


class ApprovalCheckRequest(CamelModel):
    member: MemberSchema
    amount: Decimal = Field(..., ge=0)
    household: HouseholdSchema


class ApprovalCheckResponse(CamelModel):
    requires_approval: bool


class DailyLimitRequest(CamelModel):
    member: MemberSchema
    today_spending: Decimal = Field(Decimal(0), ge=0)
    proposed_amount: Decimal = Field(..., ge=0)


class DailyLimitResponse(CamelModel):
    allowed: bool
    remaining: Optional[float] = Field(None, description="null when the member has no daily limit")


class SpendEvaluationRequest(CamelModel):
    member: MemberSchema
    household: HouseholdSchema
    amount: Decimal = Field(..., ge=0)
    today_spending: Decimal = Field(Decimal(0), ge=0)


class SpendEvaluationResponse(CamelModel):
    allowed: bool
    requires_approval: bool
    remaining: Optional[float] = None
    reasons: List[str]


class InviteRequest(CamelModel):
    inviter: MemberSchema
    household_id: str = Field(..., min_length=1)
    role: models.HouseholdRole


class InviteResponse(CamelModel):
    token: str
    expires_at: int = Field(..., description="Epoch milliseconds")


class InviteValidateRequest(CamelModel):
    token: str


class InviteValidateResponse(CamelModel):
    valid: bool
    household_id: Optional[str] = None
    role: Optional[models.HouseholdRole] = None
    expired: Optional[bool] = None


class VisibleFeaturesResponse(CamelModel):
    role: models.HouseholdRole
    features: List[str]
