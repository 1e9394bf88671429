"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from finplan_gateway.config import settings
from finplan_gateway.domain.permissions import DEFAULT_ROLE_TABLE, RolePermissionTable


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_role_table() -> RolePermissionTable:
    """Process-wide role table, shared read-only across requests"""
    return DEFAULT_ROLE_TABLE


def get_invite_secret() -> str:
    """HMAC key for invite tokens"""
    return settings.invite_token_secret.get_secret_value()


def get_invite_ttl_ms() -> int:
    return settings.invite_token_ttl_days * 24 * 60 * 60 * 1000


def get_payoff_max_months() -> int:
    return settings.payoff_max_months
