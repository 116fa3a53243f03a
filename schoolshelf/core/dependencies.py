"""Dependency providers for API handlers."""

from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass, replace

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from schoolshelf.auth.access_gate import require_area, resolve_access_state
from schoolshelf.auth.identity import IdentityVerifier, VerifiedIdentity, extract_bearer_token
from schoolshelf.auth.tenant_context import TenantScope, resolve_scope
from schoolshelf.core.config import Config, get_config
from schoolshelf.core.enums import AccessArea, AccessState
from schoolshelf.core.exceptions import AccountRejectedError, AuthenticationError, AuthorizationError
from schoolshelf.core.logging import LogContext
from schoolshelf.database.db import get_db
from schoolshelf.models import Membership
from schoolshelf.services.membership_service import MembershipService
from schoolshelf.services.tenant_service import TenantService


@dataclass(frozen=True)
class Caller:
    """Everything a handler knows about who is calling."""

    identity: VerifiedIdentity
    membership: Membership | None
    state: AccessState
    scope: TenantScope | None = None

    @property
    def member(self) -> Membership:
        if self.membership is None:
            raise AuthorizationError("Registration required.")
        return self.membership

    @property
    def tenant_scope(self) -> TenantScope:
        if self.scope is None:
            raise AuthorizationError("No school is associated with this account.")
        return self.scope

    def log_context(self) -> LogContext:
        return LogContext(
            tenant_id=self.scope.tenant_id if self.scope else getattr(self.membership, "tenant_id", None),
            membership_id=getattr(self.membership, "id", None),
            identity_ref=self.identity.uid,
            actor_email=self.identity.email,
        )


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


def get_identity_verifier(settings: Config = Depends(get_settings)) -> IdentityVerifier:
    return IdentityVerifier(secret=settings.IDENTITY_TOKEN_SECRET, issuer=settings.IDENTITY_TOKEN_ISSUER)


def get_optional_identity(
    authorization: str | None = Header(default=None, alias="Authorization"),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedIdentity | None:
    if not authorization:
        return None
    return verifier.verify(extract_bearer_token(authorization))


def get_identity(identity: VerifiedIdentity | None = Depends(get_optional_identity)) -> VerifiedIdentity:
    if identity is None:
        raise AuthenticationError("Authorization header is required.")
    return identity


def get_caller(
    identity: VerifiedIdentity = Depends(get_identity),
    db: Session = Depends(get_db_session),
) -> Caller:
    """Resolve the membership and access state; rejected accounts are signed out."""
    membership = MembershipService(db).find_by_identity(identity.uid)
    state = resolve_access_state(True, membership)
    if state is AccessState.MEMBER_REJECTED:
        raise AccountRejectedError("Membership was rejected. Please contact your school administrator.")
    return Caller(identity=identity, membership=membership, state=state)


def require_caller(area: AccessArea) -> Callable[..., Caller]:
    """Dependency factory: the caller must be allowed into `area`."""

    def dependency(caller: Caller = Depends(get_caller)) -> Caller:
        require_area(caller.state, area)
        return caller

    return dependency


def require_scope(area: AccessArea) -> Callable[..., Caller]:
    """Like `require_caller`, plus the tenant scope for the request.

    Developers may pick a tenant with `X-School-Id`; the header is ignored for
    everyone else.
    """

    def dependency(
        caller: Caller = Depends(require_caller(area)),
        x_school_id: str | None = Header(default=None, alias="X-School-Id"),
        db: Session = Depends(get_db_session),
    ) -> Caller:
        membership = caller.member
        scope = resolve_scope(
            role=membership.role,
            membership_id=membership.id,
            membership_tenant_id=membership.tenant_id,
            header_tenant_id=x_school_id,
            tenant_exists=TenantService(db).exists,
        )
        return replace(caller, scope=scope)

    return dependency
