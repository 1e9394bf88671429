"""Pytest fixtures for testing"""

import pytest
from decimal import Decimal
from typing import Callable
from fastapi.testclient import TestClient
from finplan_gateway.api.main import create_app
from finplan_gateway.domain.models import Debt, DebtType, HouseholdMember, HouseholdRole, SpendingLimits


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    app = create_app()
    return TestClient(app)


@pytest.fixture
def sample_debts() -> list[Debt]:
    """A typical household debt load: one card, one car loan, one medical bill"""
    return [
        Debt(
            id="card",
            name="Rewards Card",
            lender="Big Bank",
            type=DebtType.CREDIT_CARD,
            balance=Decimal("5000.00"),
            credit_limit=Decimal("10000.00"),
            interest_rate=Decimal("24.00"),
            minimum_payment=Decimal("100.00"),
            due_date=15,
        ),
        Debt(
            id="car",
            name="Car Loan",
            lender="Credit Union",
            type=DebtType.AUTO_LOAN,
            balance=Decimal("1000.00"),
            interest_rate=Decimal("6.00"),
            minimum_payment=Decimal("50.00"),
            due_date=1,
        ),
        Debt(
            id="medical",
            name="Hospital Bill",
            lender="City Hospital",
            type=DebtType.MEDICAL,
            balance=Decimal("2500.00"),
            interest_rate=Decimal("0"),
            minimum_payment=Decimal("25.00"),
            due_date=28,
        ),
    ]


@pytest.fixture
def sample_debts_payload() -> list[dict]:
    """Same debts as the HTTP layer receives them"""
    return [
        {
            "id": "card",
            "name": "Rewards Card",
            "type": "credit_card",
            "balance": 5000,
            "creditLimit": 10000,
            "interestRate": 24,
            "minimumPayment": 100,
            "dueDate": 15,
            "lender": "Big Bank",
        },
        {
            "id": "car",
            "name": "Car Loan",
            "type": "auto_loan",
            "balance": 1000,
            "interestRate": 6,
            "minimumPayment": 50,
        },
    ]


@pytest.fixture
def make_member() -> Callable[..., HouseholdMember]:
    """Factory for household member snapshots"""

    def _make(
        role: HouseholdRole = HouseholdRole.MEMBER,
        is_active: bool = True,
        custom_permissions=None,
        limits: SpendingLimits | None = None,
        member_id: str = "m1",
    ) -> HouseholdMember:
        return HouseholdMember(
            id=member_id,
            household_id="h1",
            user_id=f"user_{member_id}",
            role=role,
            is_active=is_active,
            custom_permissions=custom_permissions,
            limits=limits,
        )

    return _make


@pytest.fixture
def member_payload() -> Callable[..., dict]:
    """Factory for member snapshots as JSON"""

    def _payload(role: str = "member", **overrides) -> dict:
        payload = {
            "id": "m1",
            "householdId": "h1",
            "userId": "user_m1",
            "role": role,
            "isActive": True,
        }
        payload.update(overrides)
        return payload

    return _payload
