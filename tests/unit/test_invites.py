"""Unit tests for household invite tokens"""

import base64
import json
import pytest
from finplan_gateway.domain.invites import (
    INVITE_TTL_MS,
    generate_invite_token,
    validate_invite_token,
)
from finplan_gateway.domain.exceptions import InvalidInputError
from finplan_gateway.domain.models import HouseholdRole

SECRET = "test-invite-secret"
NOW_MS = 1_700_000_000_000
DAY_MS = 24 * 60 * 60 * 1000


def test_fresh_token_is_valid():
    token = generate_invite_token("h1", HouseholdRole.MEMBER, SECRET, now_ms=NOW_MS)

    result = validate_invite_token(token, SECRET, now_ms=NOW_MS + DAY_MS)

    assert result.valid is True
    assert result.household_id == "h1"
    assert result.role == HouseholdRole.MEMBER
    assert result.expired is None


def test_token_older_than_seven_days_is_expired():
    token = generate_invite_token("h1", HouseholdRole.CHILD, SECRET, now_ms=NOW_MS - 8 * DAY_MS)

    result = validate_invite_token(token, SECRET, now_ms=NOW_MS)

    assert result.valid is False
    assert result.expired is True


def test_token_at_window_edge_still_valid():
    token = generate_invite_token("h1", HouseholdRole.VIEWER, SECRET, now_ms=NOW_MS)

    assert validate_invite_token(token, SECRET, now_ms=NOW_MS + INVITE_TTL_MS).valid is True
    assert validate_invite_token(token, SECRET, now_ms=NOW_MS + INVITE_TTL_MS + 1).expired is True


@pytest.mark.parametrize("token", ["", "not-a-token", "abc.def", "%%%.###", "a.b.c"])
def test_malformed_tokens_do_not_raise(token):
    result = validate_invite_token(token, SECRET, now_ms=NOW_MS)

    assert result.valid is False
    assert result.expired is None


def test_forged_payload_rejected():
    token = generate_invite_token("h1", HouseholdRole.VIEWER, SECRET, now_ms=NOW_MS)
    _, signature = token.split(".")

    forged = json.dumps({"householdId": "h1", "role": "owner", "timestamp": NOW_MS, "random": "x"}).encode()
    forged_token = base64.urlsafe_b64encode(forged).decode().rstrip("=") + "." + signature

    assert validate_invite_token(forged_token, SECRET, now_ms=NOW_MS).valid is False


def test_wrong_secret_rejected():
    token = generate_invite_token("h1", HouseholdRole.ADMIN, SECRET, now_ms=NOW_MS)

    assert validate_invite_token(token, "another-secret", now_ms=NOW_MS).valid is False


def test_tokens_carry_a_random_nonce():
    first = generate_invite_token("h1", HouseholdRole.MEMBER, SECRET, now_ms=NOW_MS)
    second = generate_invite_token("h1", HouseholdRole.MEMBER, SECRET, now_ms=NOW_MS)

    assert first != second


def test_generate_requires_household_and_secret():
    with pytest.raises(InvalidInputError):
        generate_invite_token("", HouseholdRole.MEMBER, SECRET)
    with pytest.raises(InvalidInputError):
        generate_invite_token("h1", HouseholdRole.MEMBER, "")
