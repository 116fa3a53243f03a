"""Access gate: the single place where role/status/tenant combine into access.

`resolve_access_state` is a pure function of identity presence and the stored
membership record. Endpoints declare the area they belong to and call
`require_area` with the resolved state; nothing else re-derives role or status
checks.
"""

from __future__ import annotations

from typing import Protocol

from schoolshelf.core.enums import AccessArea, AccessState, MembershipStatus, Role
from schoolshelf.core.exceptions import AccountRejectedError, AuthenticationError, AuthorizationError


class MembershipLike(Protocol):
    role: Role
    status: MembershipStatus
    tenant_id: str | None


STATE_AREAS: dict[AccessState, frozenset[AccessArea]] = {
    AccessState.ANONYMOUS: frozenset({AccessArea.PUBLIC}),
    AccessState.AUTHENTICATED_NO_PROFILE: frozenset({AccessArea.PUBLIC, AccessArea.REGISTRATION}),
    AccessState.MEMBER_REJECTED: frozenset({AccessArea.PUBLIC}),
    AccessState.MEMBER_NO_TENANT: frozenset({AccessArea.PUBLIC, AccessArea.PROFILE, AccessArea.ONBOARDING}),
    AccessState.MEMBER_PENDING: frozenset({AccessArea.PUBLIC, AccessArea.PROFILE}),
    AccessState.MEMBER_APPROVED: frozenset({AccessArea.PUBLIC, AccessArea.PROFILE, AccessArea.LIBRARY}),
    AccessState.ADMIN_APPROVED: frozenset(
        {AccessArea.PUBLIC, AccessArea.PROFILE, AccessArea.LIBRARY, AccessArea.ADMIN}
    ),
    AccessState.DEVELOPER: frozenset(
        {AccessArea.PUBLIC, AccessArea.PROFILE, AccessArea.LIBRARY, AccessArea.ADMIN, AccessArea.DEVELOPER}
    ),
}


def resolve_access_state(identity_present: bool, membership: MembershipLike | None) -> AccessState:
    """Map (identity presence, membership record) to exactly one access state."""
    if not identity_present:
        return AccessState.ANONYMOUS
    if membership is None:
        return AccessState.AUTHENTICATED_NO_PROFILE

    role = Role(membership.role)
    status = MembershipStatus(membership.status)

    if role is Role.DEVELOPER:
        return AccessState.DEVELOPER
    if status is MembershipStatus.REJECTED:
        return AccessState.MEMBER_REJECTED
    if membership.tenant_id is None:
        return AccessState.MEMBER_NO_TENANT
    if status is MembershipStatus.PENDING:
        return AccessState.MEMBER_PENDING
    if role is Role.ADMIN:
        return AccessState.ADMIN_APPROVED
    return AccessState.MEMBER_APPROVED


def get_areas_for_state(state: AccessState) -> frozenset[AccessArea]:
    return STATE_AREAS[state]


def can_access(state: AccessState, area: AccessArea) -> bool:
    return area in STATE_AREAS[state]


def require_area(state: AccessState, area: AccessArea) -> None:
    """Raise when a caller in `state` may not reach `area`."""
    if can_access(state, area):
        return
    if state is AccessState.ANONYMOUS:
        raise AuthenticationError("Sign-in required.")
    if state is AccessState.MEMBER_REJECTED:
        raise AccountRejectedError("Membership was rejected. Please contact your school administrator.")
    if state is AccessState.AUTHENTICATED_NO_PROFILE:
        raise AuthorizationError("Registration required.")
    if state is AccessState.MEMBER_PENDING:
        raise AuthorizationError("Membership is awaiting approval.")
    if state is AccessState.MEMBER_NO_TENANT:
        raise AuthorizationError("Select a school to continue.")
    raise AuthorizationError(f"Access to the {area.value} area is not allowed.")
