# emr_core/iam/services/membership.py
from __future__ import annotations

from uuid import UUID

from emr_core.iam.models import TenantMembership


def _active_memberships(*, user_id: int, tenant_id: UUID):
    return TenantMembership.objects.filter(
        is_active=True,
        tenant_id=tenant_id,
        tenant__status="ACTIVE",
        user_id=user_id,
    )


def is_user_member_of_tenant(*, user_id: int, tenant_id: UUID) -> bool:
    """
    Single source of truth used by scope enforcement.
    """
    return _active_memberships(user_id=user_id, tenant_id=tenant_id).exists()


def roles_for_user(*, user_id: int, tenant_id: UUID) -> set[str]:
    return set(_active_memberships(user_id=user_id, tenant_id=tenant_id).values_list("role", flat=True))
