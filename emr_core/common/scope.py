# emr_core/common/scope.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from rest_framework.exceptions import ValidationError

# Reuse the canonical messages from iam.scope (single source of truth)
from emr_core.iam.scope import HDR_TENANT, INVALID_SCOPE_MSG, MISSING_SCOPE_MSG


def parse_uuid(value) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def _get_header(request, name: str) -> Optional[str]:
    """
    request.headers is case-insensitive; fallback to META for test clients.
    """
    headers = getattr(request, "headers", None)
    if headers is not None:
        v = headers.get(name)
        if v:
            return v
    meta_key = "HTTP_" + name.upper().replace("-", "_")
    return request.META.get(meta_key)


def peek_tenant_id(request) -> Optional[UUID]:
    """
    Non-raising resolver: middleware-attached tenant first, then the header.
    Returns None when missing or malformed.
    """
    attached = getattr(request, "tenant_id", None)
    if attached:
        return parse_uuid(attached)
    raw = _get_header(request, HDR_TENANT)
    return parse_uuid(raw) if raw else None


def require_tenant_id(request) -> UUID:
    """
    Returns the request's tenant UUID or raises a 400 ValidationError.
    Does NOT check membership: that is enforced by middleware/auth.
    """
    attached = getattr(request, "tenant_id", None)
    raw = attached or _get_header(request, HDR_TENANT)
    if not raw:
        raise ValidationError({"detail": MISSING_SCOPE_MSG})

    tenant_id = parse_uuid(raw)
    if tenant_id is None:
        raise ValidationError({"detail": INVALID_SCOPE_MSG})

    request.tenant_id = tenant_id
    return tenant_id
