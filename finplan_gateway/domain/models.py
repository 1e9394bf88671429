"""Domain models - pure Python dataclasses representing debts, credit and household members"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple, FrozenSet


class DebtType(str, Enum):
    CREDIT_CARD = "credit_card"
    STUDENT_LOAN = "student_loan"
    AUTO_LOAN = "auto_loan"
    MORTGAGE = "mortgage"
    PERSONAL_LOAN = "personal_loan"
    MEDICAL = "medical"
    OTHER = "other"


class PayoffMethod(str, Enum):
    AVALANCHE = "avalanche"
    SNOWBALL = "snowball"


@dataclass(frozen=True)
class Debt:
    """Single liability to schedule payoff for. Amounts are currency units."""

    id: str
    balance: Decimal
    interest_rate: Decimal  # annual nominal percentage, 19.99 == 19.99%/year
    minimum_payment: Decimal
    name: str = ""
    lender: str = ""
    type: DebtType = DebtType.OTHER
    credit_limit: Optional[Decimal] = None  # revolving (credit_card) only
    due_date: int = 1  # day of month, informational


@dataclass(frozen=True)
class PayoffScheduleEntry:
    """One simulated month for one debt"""

    month: int
    debt_id: str
    payment: Decimal
    interest: Decimal
    principal: Decimal  # negative when the payment did not cover the interest
    balance: Decimal


@dataclass(frozen=True)
class DebtPayoffSummary:
    """Per-debt rollup of a simulated plan"""

    debt_id: str
    debt_name: str
    starting_balance: Decimal
    payoff_month: int
    total_interest_paid: Decimal


@dataclass(frozen=True)
class PayoffStrategy:
    """Result of simulating one ordering across the full payoff horizon"""

    method: PayoffMethod
    entries: List[PayoffScheduleEntry]
    total_interest: Decimal
    total_months: int
    payoff_order: List[str]
    total_debt: Decimal
    monthly_budget: Decimal
    debt_summaries: List[DebtPayoffSummary] = field(default_factory=list)

    @property
    def name(self) -> str:
        if self.method == PayoffMethod.AVALANCHE:
            return "Avalanche (Highest Interest First)"
        return "Snowball (Lowest Balance First)"


@dataclass(frozen=True)
class StrategyComparison:
    """Both orderings side by side; positive savings favour avalanche"""

    avalanche: PayoffStrategy
    snowball: PayoffStrategy
    interest_saved: Decimal  # snowball interest - avalanche interest
    months_saved: int  # snowball months - avalanche months


@dataclass(frozen=True)
class FreedomDate:
    """Projected calendar date of zero total debt"""

    date: date
    strategy: PayoffStrategy


@dataclass(frozen=True)
class CreditFactors:
    """Inputs to the credit score heuristic"""

    credit_utilization: float  # 0-1
    payment_history: float  # 0-1, on-time payment rate
    account_age: int  # months
    account_count: int
    hard_inquiries: int
    derogatories_count: int


@dataclass(frozen=True)
class CreditFactor:
    """One explained contribution to an estimated score"""

    name: str
    impact: str  # high | medium | low
    status: str  # positive | neutral | negative
    description: str
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class CreditScore:
    score: int
    rating: str
    factors: List[CreditFactor]
    source: str = "estimated"


@dataclass(frozen=True)
class CreditAccount:
    """Revolving account balance against its limit"""

    balance: Decimal
    credit_limit: Optional[Decimal]
    id: str = ""
    name: str = ""


@dataclass(frozen=True)
class AccountUtilization:
    account_id: str
    account_name: str
    balance: Decimal
    limit: Decimal
    utilization: float


@dataclass(frozen=True)
class CreditUtilization:
    overall: float
    by_account: List[AccountUtilization]
    health_status: str
    recommendation: str


class HouseholdRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"
    CHILD = "child"


class Action(str, Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    APPROVE = "approve"

    @classmethod
    def parse(cls, value: str) -> Optional["Action"]:
        """Return the action for a name, or None when it is not recognised"""
        try:
            return cls(value)
        except ValueError:
            return None


class Feature(str, Enum):
    ALL = "*"
    ACCOUNTS = "accounts"
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"
    GOALS = "goals"
    BILLS = "bills"
    MEMBERS = "members"
    SETTINGS = "settings"
    REPORTS = "reports"
    AUTOMATIONS = "automations"
    TASKS = "tasks"
    ALLOWANCE = "allowance"
    SPENDING_REQUESTS = "spending_requests"
    INSIGHTS = "insights"
    ANALYTICS = "analytics"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "Feature":
        """Map a feature name onto the closed set; anything else is UNKNOWN"""
        try:
            feature = cls(value)
        except ValueError:
            return cls.UNKNOWN
        return feature

    @classmethod
    def known(cls) -> List["Feature"]:
        """Concrete features, excluding the wildcard and the unknown fallback"""
        return [f for f in cls if f not in (cls.ALL, cls.UNKNOWN)]


@dataclass(frozen=True)
class Permission:
    feature: Feature
    actions: FrozenSet[Action]


@dataclass(frozen=True)
class SpendingLimits:
    max_transaction_amount: Optional[Decimal] = None
    require_approval_above: Optional[Decimal] = None
    daily_spending_limit: Optional[Decimal] = None


@dataclass(frozen=True)
class RolePermissions:
    role: HouseholdRole
    permissions: Tuple[Permission, ...]
    limits: Optional[SpendingLimits] = None


@dataclass(frozen=True)
class HouseholdMember:
    """A person's relationship to one household, supplied fresh per call"""

    id: str
    household_id: str
    user_id: str
    role: HouseholdRole
    is_active: bool = True
    custom_permissions: Optional[Tuple[Permission, ...]] = None
    limits: Optional[SpendingLimits] = None
    name: str = ""
    email: str = ""


@dataclass(frozen=True)
class Household:
    """Household-level settings that affect approval decisions"""

    require_approval_for_large_transactions: bool = False
    large_transaction_threshold: Decimal = Decimal("0")
    id: str = ""
    name: str = ""


@dataclass(frozen=True)
class DailyLimitCheck:
    allowed: bool
    remaining: Decimal  # Decimal("Infinity") when no limit applies

    @property
    def unlimited(self) -> bool:
        return self.remaining.is_infinite()


@dataclass(frozen=True)
class SpendDecision:
    allowed: bool
    requires_approval: bool
    remaining: Decimal
    reasons: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InviteValidation:
    valid: bool
    household_id: Optional[str] = None
    role: Optional[HouseholdRole] = None
    expired: Optional[bool] = None
