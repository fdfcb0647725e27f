# emr_core/audit/selectors.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from django.db.models import QuerySet

from emr_core.audit.config import AuditSettings
from emr_core.audit.models import AuditEvent


@dataclass(frozen=True)
class AuditFilter:
    tenant_id: Optional[UUID] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    actor_user_id: Optional[int] = None
    action: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None


@dataclass(frozen=True)
class AuditPage:
    events: list[AuditEvent]
    total_count: int
    page: int
    page_size: int


def get_audit_event(*, event_id: int, tenant_id: Optional[UUID] = None) -> AuditEvent | None:
    qs = AuditEvent.objects.select_related("actor_user").filter(id=event_id)
    if tenant_id is not None:
        qs = qs.filter(tenant_id=tenant_id)
    return qs.first()


def filter_audit_events(filters: AuditFilter) -> QuerySet[AuditEvent]:
    """
    Newest first; ties broken by id so equal timestamps keep insertion order.
    Bounds on created_at are inclusive.
    """
    qs = AuditEvent.objects.select_related("actor_user").all()

    if filters.tenant_id is not None:
        qs = qs.filter(tenant_id=filters.tenant_id)
    if filters.resource_type:
        qs = qs.filter(resource_type=filters.resource_type)
    if filters.resource_id:
        qs = qs.filter(resource_id=str(filters.resource_id))
    if filters.actor_user_id is not None:
        qs = qs.filter(actor_user_id=filters.actor_user_id)
    if filters.action:
        qs = qs.filter(action=filters.action)
    if filters.created_from is not None:
        qs = qs.filter(created_at__gte=filters.created_from)
    if filters.created_to is not None:
        qs = qs.filter(created_at__lte=filters.created_to)

    return qs.order_by("-created_at", "-id")


def list_audit_events(
    filters: AuditFilter,
    *,
    page: int = 1,
    page_size: Optional[int] = None,
    config: AuditSettings | None = None,
) -> AuditPage:
    cfg = config or AuditSettings.from_settings()
    size = cfg.default_page_size if page_size is None else page_size

    if page < 1:
        raise ValueError("page must be >= 1")
    if size < 1:
        raise ValueError("page_size must be >= 1")
    size = min(size, cfg.max_page_size)

    qs = filter_audit_events(filters)
    total = qs.count()
    offset = (page - 1) * size

    return AuditPage(
        events=list(qs[offset : offset + size]),
        total_count=total,
        page=page,
        page_size=size,
    )
