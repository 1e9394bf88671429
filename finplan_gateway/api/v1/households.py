"""/v1/households/* - permission checks, approval rules, spending limits and invites"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from finplan_gateway.api.v1.schemas import (
    ApprovalCheckRequest,
    ApprovalCheckResponse,
    DailyLimitRequest,
    DailyLimitResponse,
    InviteRequest,
    InviteResponse,
    InviteValidateRequest,
    InviteValidateResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    SpendEvaluationRequest,
    SpendEvaluationResponse,
    VisibleFeaturesResponse,
)
from finplan_gateway.api.dependencies import (
    get_invite_secret,
    get_invite_ttl_ms,
    get_request_id,
    get_role_table,
)
from finplan_gateway.domain.exceptions import InvalidInputError
from finplan_gateway.domain.invites import generate_invite_token, invite_expires_at_ms, validate_invite_token
from finplan_gateway.domain.models import Action, Feature, HouseholdRole
from finplan_gateway.domain.permissions import (
    RolePermissionTable,
    check_daily_limit,
    evaluate_spend,
    get_visible_features,
    has_permission,
    requires_approval,
)
from finplan_gateway.infrastructure.observability.logging import log_permission_decision
from finplan_gateway.infrastructure.observability.metrics import (
    invite_token_counter,
    record_invite_validation,
    record_permission_check,
)

router = APIRouter()


@router.post("/households/permissions/check", response_model=PermissionCheckResponse)
def check_permission(
    request_body: PermissionCheckRequest,
    request: Request,
    table: RolePermissionTable = Depends(get_role_table),
):
    """Whether the member may perform `action` on `feature`; unknown names deny"""
    member = request_body.member.to_domain()
    allowed = has_permission(member, request_body.feature, request_body.action, table)

    record_permission_check("permission", allowed)
    log_permission_decision(
        get_request_id(request),
        member.id,
        "permission",
        allowed,
        f"{request_body.feature}:{request_body.action}",
    )
    return PermissionCheckResponse(allowed=allowed)


@router.post("/households/approvals/check", response_model=ApprovalCheckResponse)
def check_approval(
    request_body: ApprovalCheckRequest,
    request: Request,
    table: RolePermissionTable = Depends(get_role_table),
):
    """Whether a transaction of `amount` needs approval under member, role or household rules"""
    member = request_body.member.to_domain()
    needed = requires_approval(member, request_body.amount, request_body.household.to_domain(), table)

    record_permission_check("approval", not needed)
    log_permission_decision(get_request_id(request), member.id, "approval", not needed, str(request_body.amount))
    return ApprovalCheckResponse(requires_approval=needed)


@router.post("/households/spending/daily-limit", response_model=DailyLimitResponse)
def daily_limit(
    request_body: DailyLimitRequest,
    request: Request,
    table: RolePermissionTable = Depends(get_role_table),
):
    """Remaining daily allowance; `remaining` is null when no limit applies"""
    member = request_body.member.to_domain()
    result = check_daily_limit(member, request_body.today_spending, request_body.proposed_amount, table)

    record_permission_check("daily_limit", result.allowed)
    log_permission_decision(get_request_id(request), member.id, "daily_limit", result.allowed)
    return DailyLimitResponse(
        allowed=result.allowed,
        remaining=None if result.unlimited else float(result.remaining),
    )


@router.post("/households/spending/evaluate", response_model=SpendEvaluationResponse)
def evaluate_spending(
    request_body: SpendEvaluationRequest,
    request: Request,
    table: RolePermissionTable = Depends(get_role_table),
):
    """All spending rules at once: permission, max transaction, daily limit and approval"""
    member = request_body.member.to_domain()
    try:
        decision = evaluate_spend(
            member,
            request_body.household.to_domain(),
            request_body.amount,
            request_body.today_spending,
            table,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    record_permission_check("spend", decision.allowed)
    log_permission_decision(get_request_id(request), member.id, "spend", decision.allowed, "; ".join(decision.reasons))
    return SpendEvaluationResponse(
        allowed=decision.allowed,
        requires_approval=decision.requires_approval,
        remaining=None if decision.remaining.is_infinite() else float(decision.remaining),
        reasons=decision.reasons,
    )


@router.post("/households/invites", response_model=InviteResponse, status_code=201)
def create_invite(
    request_body: InviteRequest,
    request: Request,
    table: RolePermissionTable = Depends(get_role_table),
    secret: str = Depends(get_invite_secret),
    ttl_ms: int = Depends(get_invite_ttl_ms),
):
    """
    Issue an invite token for a household role.

    The inviter must belong to the household and hold members:create
    (owners and admins by default).
    """
    request_id = get_request_id(request)
    inviter = request_body.inviter.to_domain()

    allowed = inviter.household_id == request_body.household_id and has_permission(
        inviter, Feature.MEMBERS, Action.CREATE, table
    )
    record_permission_check("invite", allowed)
    log_permission_decision(request_id, inviter.id, "invite", allowed, request_body.role.value)
    if not allowed:
        raise HTTPException(status_code=403, detail="Inviter may not add members to this household")

    issued_at = int(time.time() * 1000)
    token = generate_invite_token(request_body.household_id, request_body.role, secret, now_ms=issued_at)
    invite_token_counter.labels(event="issued").inc()
    logging.info(
        "Invite issued",
        extra={"request_id": request_id, "household_id": request_body.household_id, "role": request_body.role.value},
    )

    return InviteResponse(token=token, expires_at=invite_expires_at_ms(issued_at, ttl_ms))


@router.post("/households/invites/validate", response_model=InviteValidateResponse, response_model_exclude_none=True)
def validate_invite(
    request_body: InviteValidateRequest,
    secret: str = Depends(get_invite_secret),
    ttl_ms: int = Depends(get_invite_ttl_ms),
):
    """Decode and check an invite token; a bad token is a negative result, not an error"""
    result = validate_invite_token(request_body.token, secret, max_age_ms=ttl_ms)
    record_invite_validation(result.valid, result.expired)

    return InviteValidateResponse(
        valid=result.valid,
        household_id=result.household_id,
        role=result.role,
        expired=result.expired,
    )


@router.get("/households/roles/{role}/features", response_model=VisibleFeaturesResponse)
def visible_features(role: HouseholdRole, table: RolePermissionTable = Depends(get_role_table)):
    """Feature names the role can see at all, for navigation"""
    return VisibleFeaturesResponse(role=role, features=get_visible_features(role, table))
