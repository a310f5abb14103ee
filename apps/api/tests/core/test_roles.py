"""
Tests for the role authorizer and the action policy mapping.
"""

from itertools import combinations

import pytest

from skoolar.core.roles import (
    ACTION_POLICIES,
    ACTION_REGISTRATIONS_APPROVE,
    ACTION_REGISTRATIONS_LIST_PENDING,
    ACTION_REGISTRATIONS_REJECT,
    ACTION_REGISTRATIONS_VIEW,
    Permission,
    Role,
    authorize,
)

ALL_ROLES = list(Role)

# Every allow-set of size one or two over the role enumeration
ALLOW_SETS = [frozenset(c) for n in (1, 2) for c in combinations(ALL_ROLES, n)]


@pytest.mark.parametrize("allowed", ALLOW_SETS, ids=lambda s: "+".join(sorted(r.value for r in s)))
def test_permitted_iff_member(allowed):
    for role in ALL_ROLES:
        expected = Permission.PERMITTED if role in allowed else Permission.DENIED
        assert authorize(role, allowed) is expected


def test_full_allow_set_permits_everyone():
    for role in ALL_ROLES:
        assert authorize(role, frozenset(ALL_ROLES)) is Permission.PERMITTED


def test_empty_allow_set_permits_any_role():
    for role in ALL_ROLES:
        assert authorize(role, frozenset()) is Permission.PERMITTED


@pytest.mark.parametrize(
    "action",
    [
        ACTION_REGISTRATIONS_LIST_PENDING,
        ACTION_REGISTRATIONS_VIEW,
        ACTION_REGISTRATIONS_APPROVE,
        ACTION_REGISTRATIONS_REJECT,
    ],
)
def test_registration_actions_are_operator_only(action):
    assert ACTION_POLICIES[action] == frozenset({Role.PLATFORM_OPERATOR})


def test_system_admin_cannot_decide_registrations():
    allowed = ACTION_POLICIES[ACTION_REGISTRATIONS_APPROVE]
    assert authorize(Role.SYSTEM_ADMIN, allowed) is Permission.DENIED
