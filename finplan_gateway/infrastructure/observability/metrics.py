"""Prometheus metrics for payoff computations, permission checks and invite tokens"""

from prometheus_client import Counter, Histogram

# Debt strategy metrics
payoff_counter = Counter(
    "finplan_payoff_computations_total",
    "Debt payoff computations",
    ["action", "outcome"],  # outcome: ok | error
)

payoff_months_histogram = Histogram(
    "finplan_payoff_months",
    "Months to debt freedom for computed strategies",
    buckets=[6, 12, 24, 36, 60, 120, 240, 360, 600],
)

# Household metrics
permission_check_counter = Counter(
    "finplan_permission_checks_total",
    "Household permission and limit decisions",
    ["check", "outcome"],  # outcome: allowed | denied
)

invite_token_counter = Counter(
    "finplan_invite_tokens_total",
    "Invite token events",
    ["event"],  # issued | valid | expired | invalid
)

domain_error_counter = Counter(
    "finplan_domain_errors_total",
    "Domain errors surfaced to callers",
    ["kind"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payoff(action: str, total_months: int) -> None:
    """Record a successful payoff computation"""
    payoff_counter.labels(action=action, outcome="ok").inc()
    payoff_months_histogram.observe(total_months)


def record_domain_error(action: str, error: Exception) -> None:
    payoff_counter.labels(action=action, outcome="error").inc()
    domain_error_counter.labels(kind=type(error).__name__).inc()


def record_permission_check(check: str, allowed: bool) -> None:
    permission_check_counter.labels(check=check, outcome="allowed" if allowed else "denied").inc()


def record_invite_validation(valid: bool, expired: bool | None) -> None:
    if valid:
        event = "valid"
    elif expired:
        event = "expired"
    else:
        event = "invalid"
    invite_token_counter.labels(event=event).inc()
