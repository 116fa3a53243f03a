"""Tenant scope extraction and enforcement utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from schoolshelf.core.enums import Role
from schoolshelf.core.exceptions import AuthorizationError, TenantScopeViolation, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.orm import Query


@dataclass(frozen=True)
class TenantScope:
    """Tenant restriction applied to every query against tenant-owned rows.

    `tenant_id` is None only for a developer who did not select a tenant, in
    which case `all_tenants` is True.
    """

    role: Role
    tenant_id: str | None
    membership_id: str | None = None
    all_tenants: bool = False

    @property
    def is_developer(self) -> bool:
        return self.role is Role.DEVELOPER

    def require_tenant(self) -> str:
        """Return the tenant id for operations that must target exactly one tenant."""
        if self.tenant_id is not None:
            return self.tenant_id
        if self.is_developer:
            raise ValidationError("Select a school with the X-School-Id header.")
        raise TenantScopeViolation("Tenant scope is missing for a non-developer caller.")

    def apply(self, query: "Query", model: Any) -> "Query":
        """Narrow `query` to this scope's tenant."""
        if self.tenant_id is not None:
            return query.filter(model.tenant_id == self.tenant_id)
        if self.is_developer and self.all_tenants:
            return query
        raise TenantScopeViolation(f"Unscoped query on {getattr(model, '__tablename__', model)!r}.")

    def owns(self, entity_tenant_id: str | None) -> bool:
        if self.tenant_id is None:
            return self.is_developer and self.all_tenants
        return entity_tenant_id == self.tenant_id


def resolve_scope(
    role: Role,
    membership_id: str | None,
    membership_tenant_id: str | None,
    header_tenant_id: str | None = None,
    tenant_exists: Callable[[str], bool] | None = None,
) -> TenantScope:
    """Build the request scope; only developers may pick a tenant by header."""
    if role is Role.DEVELOPER:
        if header_tenant_id:
            if tenant_exists is not None and not tenant_exists(header_tenant_id):
                raise ValidationError("Invalid school id.")
            return TenantScope(role=role, tenant_id=header_tenant_id, membership_id=membership_id)
        return TenantScope(role=role, tenant_id=None, membership_id=membership_id, all_tenants=True)

    if membership_tenant_id is None:
        raise AuthorizationError("No school is associated with this account.")
    return TenantScope(role=role, tenant_id=membership_tenant_id, membership_id=membership_id)


def enforce_tenant_match(entity_tenant_id: str | None, scope: TenantScope) -> None:
    """Ensure entity access stays inside the scope's tenant."""
    if not scope.owns(entity_tenant_id):
        raise AuthorizationError("Cross-tenant access denied.")
