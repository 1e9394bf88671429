"""Household permission model - role table lookups, approval rules and spending limits"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import List, Mapping, Optional, Union

from finplan_gateway.domain.exceptions import InvalidInputError
from finplan_gateway.domain.models import (
    Action,
    DailyLimitCheck,
    Feature,
    Household,
    HouseholdMember,
    HouseholdRole,
    Permission,
    RolePermissions,
    SpendDecision,
    SpendingLimits,
)

UNLIMITED = Decimal("Infinity")


@dataclass(frozen=True)
class RolePermissionTable:
    """
    Versioned role -> permissions lookup.

    Built once at startup and shared read-only. extend() returns a new
    table; the roles mapping is exposed as a read-only proxy.
    """

    version: str
    roles: Mapping[HouseholdRole, RolePermissions] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", MappingProxyType(dict(self.roles)))

    def for_role(self, role: HouseholdRole) -> Optional[RolePermissions]:
        return self.roles.get(role)

    def extend(self, *role_permissions: RolePermissions, version: str) -> "RolePermissionTable":
        """New table with the given roles added or replaced"""
        roles = dict(self.roles)
        for entry in role_permissions:
            roles[entry.role] = entry
        return RolePermissionTable(version=version, roles=roles)


def _perm(feature: Feature, *actions: Action) -> Permission:
    return Permission(feature=feature, actions=frozenset(actions))


_ALL_ACTIONS = tuple(Action)
V, C, E, D = Action.VIEW, Action.CREATE, Action.EDIT, Action.DELETE

DEFAULT_ROLE_TABLE = RolePermissionTable(
    version="2024.1",
    roles={
        HouseholdRole.OWNER: RolePermissions(
            role=HouseholdRole.OWNER,
            permissions=(_perm(Feature.ALL, *_ALL_ACTIONS),),
        ),
        HouseholdRole.ADMIN: RolePermissions(
            role=HouseholdRole.ADMIN,
            permissions=(
                _perm(Feature.ACCOUNTS, V, C, E),
                _perm(Feature.TRANSACTIONS, V, C, E, D),
                _perm(Feature.BUDGETS, V, C, E, D),
                _perm(Feature.GOALS, V, C, E, D),
                _perm(Feature.BILLS, V, C, E, D),
                _perm(Feature.MEMBERS, V, C, E),
                _perm(Feature.SETTINGS, V, E),
                _perm(Feature.REPORTS, V, C),
                _perm(Feature.AUTOMATIONS, V, C, E, D),
            ),
        ),
        HouseholdRole.MEMBER: RolePermissions(
            role=HouseholdRole.MEMBER,
            permissions=(
                _perm(Feature.ACCOUNTS, V),
                _perm(Feature.TRANSACTIONS, V, C),
                _perm(Feature.BUDGETS, V),
                _perm(Feature.GOALS, V, C, E),
                _perm(Feature.BILLS, V),
                _perm(Feature.TASKS, V, C, E),
                _perm(Feature.REPORTS, V),
            ),
        ),
        HouseholdRole.VIEWER: RolePermissions(
            role=HouseholdRole.VIEWER,
            permissions=(
                _perm(Feature.ACCOUNTS, V),
                _perm(Feature.TRANSACTIONS, V),
                _perm(Feature.BUDGETS, V),
                _perm(Feature.GOALS, V),
                _perm(Feature.REPORTS, V),
            ),
        ),
        HouseholdRole.CHILD: RolePermissions(
            role=HouseholdRole.CHILD,
            permissions=(
                _perm(Feature.ALLOWANCE, V),
                _perm(Feature.GOALS, V, C),
                _perm(Feature.TASKS, V, E),
                _perm(Feature.SPENDING_REQUESTS, V, C),
            ),
            limits=SpendingLimits(
                max_transaction_amount=Decimal("50"),
                require_approval_above=Decimal("20"),
                daily_spending_limit=Decimal("25"),
            ),
        ),
    },
)


def _matches(permission: Permission, feature: Feature) -> bool:
    return permission.feature == Feature.ALL or permission.feature == feature


def has_permission(
    member: HouseholdMember,
    feature: Union[str, Feature],
    action: Union[str, Action],
    table: RolePermissionTable = DEFAULT_ROLE_TABLE,
) -> bool:
    """
    Decide whether a member may perform an action on a feature.

    Order of evaluation:
    1. Inactive members are denied everything.
    2. A custom permission for the feature (or the wildcard) fully replaces
       the role default; there is no merge.
    3. Otherwise the role table decides.
    Unknown features and actions are always denied, including for owners.
    Asking about the wildcard feature itself ("*") is denied as well; the
    wildcard only grants access when it appears in a permission entry.
    """
    if not member.is_active:
        return False

    if not isinstance(feature, Feature):
        feature = Feature.parse(feature)
    if not isinstance(action, Action):
        action = Action.parse(action)
    if action is None or feature in (Feature.UNKNOWN, Feature.ALL):
        return False

    if member.custom_permissions:
        for custom in member.custom_permissions:
            if _matches(custom, feature):
                return action in custom.actions

    role_permissions = table.for_role(member.role)
    if role_permissions is None:
        return False

    return any(
        _matches(perm, feature) and action in perm.actions
        for perm in role_permissions.permissions
    )


def _effective_limit(
    member: HouseholdMember,
    name: str,
    table: RolePermissionTable,
) -> Optional[Decimal]:
    """Member override when set, else the role default, else None"""
    if member.limits is not None:
        value = getattr(member.limits, name)
        if value is not None:
            return value

    role_permissions = table.for_role(member.role)
    if role_permissions is None or role_permissions.limits is None:
        return None
    return getattr(role_permissions.limits, name)


def requires_approval(
    member: HouseholdMember,
    amount: Decimal,
    household: Household,
    table: RolePermissionTable = DEFAULT_ROLE_TABLE,
) -> bool:
    """True when any of member limit, role limit or household threshold is exceeded"""
    member_limit = member.limits.require_approval_above if member.limits else None
    if member_limit is not None and amount > member_limit:
        return True

    role_permissions = table.for_role(member.role)
    role_limit = role_permissions.limits.require_approval_above if role_permissions and role_permissions.limits else None
    if role_limit is not None and amount > role_limit:
        return True

    if household.require_approval_for_large_transactions:
        if amount > household.large_transaction_threshold:
            return True

    return False


def check_daily_limit(
    member: HouseholdMember,
    today_spending: Decimal,
    proposed_amount: Decimal,
    table: RolePermissionTable = DEFAULT_ROLE_TABLE,
) -> DailyLimitCheck:
    """
    Check a proposed spend against the effective daily limit.

    remaining = max(0, limit - spent so far); allowed = proposed <= remaining.
    With no limit configured the spend is allowed and remaining is infinite.
    """
    limit = _effective_limit(member, "daily_spending_limit", table)
    if limit is None:
        return DailyLimitCheck(allowed=True, remaining=UNLIMITED)

    remaining = max(Decimal(0), Decimal(limit) - Decimal(today_spending))
    return DailyLimitCheck(allowed=proposed_amount <= remaining, remaining=remaining)


def exceeds_max_transaction(
    member: HouseholdMember,
    amount: Decimal,
    table: RolePermissionTable = DEFAULT_ROLE_TABLE,
) -> bool:
    limit = _effective_limit(member, "max_transaction_amount", table)
    return limit is not None and amount > limit


def evaluate_spend(
    member: HouseholdMember,
    household: Household,
    amount: Decimal,
    today_spending: Decimal = Decimal(0),
    table: RolePermissionTable = DEFAULT_ROLE_TABLE,
) -> SpendDecision:
    """
    Combine every spending rule into one decision.

    Children spend through spending requests; other roles need
    transactions:create. Reasons list each rule that blocked the spend.
    """
    if amount < 0 or today_spending < 0:
        raise InvalidInputError("Amounts must be non-negative")

    reasons: List[str] = []
    feature = Feature.SPENDING_REQUESTS if member.role == HouseholdRole.CHILD else Feature.TRANSACTIONS

    if not member.is_active:
        reasons.append("member is inactive")
    elif not has_permission(member, feature, Action.CREATE, table):
        reasons.append(f"role '{member.role.value}' cannot create {feature.value}")

    if exceeds_max_transaction(member, amount, table):
        reasons.append("amount exceeds maximum transaction amount")

    daily = check_daily_limit(member, today_spending, amount, table)
    if not daily.allowed:
        reasons.append("amount exceeds remaining daily spending limit")

    return SpendDecision(
        allowed=not reasons,
        requires_approval=requires_approval(member, amount, household, table),
        remaining=daily.remaining,
        reasons=reasons,
    )


def get_visible_features(
    role: HouseholdRole,
    table: RolePermissionTable = DEFAULT_ROLE_TABLE,
) -> List[str]:
    """De-duplicated feature names a role can see at all; the wildcard expands to every known feature"""
    role_permissions = table.for_role(role)
    if role_permissions is None:
        return []

    if any(p.feature == Feature.ALL for p in role_permissions.permissions):
        return [f.value for f in Feature.known()]

    features: List[str] = []
    for perm in role_permissions.permissions:
        if perm.actions and perm.feature != Feature.UNKNOWN and perm.feature.value not in features:
            features.append(perm.feature.value)
    return features
