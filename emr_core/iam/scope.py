# emr_core/iam/scope.py
from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from rest_framework.exceptions import PermissionDenied, ValidationError

from emr_core.iam.services.membership import is_user_member_of_tenant


@dataclass(frozen=True)
class Scope:
    tenant_id: UUID


HDR_TENANT = "X-Tenant-Id"

MISSING_SCOPE_MSG = "Missing scope header. Provide X-Tenant-Id."
INVALID_SCOPE_MSG = "Invalid scope header. Provide a valid UUID for X-Tenant-Id."


def _get_header(request, name: str) -> str | None:
    headers = getattr(request, "headers", None)
    if headers is None:
        return None
    return headers.get(name)


def resolve_scope_from_headers(request) -> Scope | None:
    """
    Reads the scope header. Returns None when it is absent.
    Raises 400 ValidationError when it is not a UUID.
    """
    tenant_raw = _get_header(request, HDR_TENANT)
    if not tenant_raw:
        return None

    try:
        tenant_id = UUID(str(tenant_raw))
    except (TypeError, ValueError):
        raise ValidationError({"detail": INVALID_SCOPE_MSG})
    return Scope(tenant_id=tenant_id)


def assert_user_membership(user, scope: Scope) -> None:
    """
    Ensures user is an active member of scope.tenant_id; raises 403 if not.
    """
    if not user or not getattr(user, "is_authenticated", False):
        raise PermissionDenied("Authentication required to set scope.")

    if not is_user_member_of_tenant(user_id=user.id, tenant_id=scope.tenant_id):
        raise PermissionDenied("You do not have access to the selected tenant.")


def apply_scope_from_headers(request, user=None) -> Scope | None:
    """
    Used by the auth layer (CookieOrHeaderJWTAuthentication).

    If the scope header is present:
      - validates it is a UUID
      - verifies user membership
      - sets request.tenant_id and request.scope

    If no scope header: returns None and does nothing.
    """
    scope = resolve_scope_from_headers(request)
    if scope is None:
        return None

    u = user or getattr(request, "user", None)
    assert_user_membership(u, scope)

    request.tenant_id = scope.tenant_id
    request.scope = scope
    return scope
