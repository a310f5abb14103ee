"""
Roles and Action Policies

Closed role enumeration, the per-action allow-sets, and the role authorizer.

Every protected action is named in ACTION_POLICIES. An empty allow-set means
the action is open to any validated session; it never means "no session
required".
"""

import enum
from collections.abc import Collection, Mapping


class Role(str, enum.Enum):
    """User roles in the system."""

    SYSTEM_ADMIN = "system_admin"
    SCHOOL_ADMIN = "school_admin"
    DEPARTMENT_HEAD = "department_head"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"
    PLATFORM_OPERATOR = "platform_operator"


class Permission(str, enum.Enum):
    """Outcome of a role check."""

    PERMITTED = "permitted"
    DENIED = "denied"


# Action names
ACTION_AUTH_PROFILE = "auth.profile"
ACTION_AUTH_VERIFY = "auth.verify"
ACTION_REGISTRATIONS_LIST_PENDING = "registrations.list_pending"
ACTION_REGISTRATIONS_VIEW = "registrations.view"
ACTION_REGISTRATIONS_APPROVE = "registrations.approve"
ACTION_REGISTRATIONS_REJECT = "registrations.reject"

_OPERATORS_ONLY = frozenset({Role.PLATFORM_OPERATOR})
_ANY_SESSION: frozenset[Role] = frozenset()

ACTION_POLICIES: Mapping[str, frozenset[Role]] = {
    ACTION_AUTH_PROFILE: _ANY_SESSION,
    ACTION_AUTH_VERIFY: _ANY_SESSION,
    ACTION_REGISTRATIONS_LIST_PENDING: _OPERATORS_ONLY,
    ACTION_REGISTRATIONS_VIEW: _OPERATORS_ONLY,
    ACTION_REGISTRATIONS_APPROVE: _OPERATORS_ONLY,
    ACTION_REGISTRATIONS_REJECT: _OPERATORS_ONLY,
}


def authorize(role: Role, allowed_roles: Collection[Role]) -> Permission:
    """
    Decide whether a role may perform an action.

    Args:
        role: Role of the validated session
        allowed_roles: Allow-set declared by the action

    Returns:
        PERMITTED when the allow-set is empty or contains the role,
        DENIED otherwise
    """
    if not allowed_roles:
        return Permission.PERMITTED
    if role in allowed_roles:
        return Permission.PERMITTED
    return Permission.DENIED
