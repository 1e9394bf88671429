"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Debt, member or budget data is malformed or out of range"""

    pass


class InsufficientBudgetError(DomainException):
    """Monthly budget does not cover the sum of minimum payments"""

    pass


class PayoffNotConvergingError(DomainException):
    """Payoff simulation hit the month cap with balances still outstanding"""

    pass


class UnknownStrategyError(DomainException):
    """Payoff strategy or action name is not recognised"""

    pass


class MalformedTokenError(DomainException):
    """Invite token could not be decoded or failed its signature check"""

    pass
