from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from emr_core.notifications.models import Notification


def notifications_qs(*, tenant_id: UUID, patient_id: UUID | None = None, is_read: bool | None = None) -> QuerySet[Notification]:
    qs = Notification.objects.filter(tenant_id=tenant_id)
    if patient_id is not None:
        qs = qs.filter(patient_id=patient_id)
    if is_read is not None:
        qs = qs.filter(is_read=is_read)
    return qs.order_by("-created_at")


def get_notification(*, tenant_id: UUID, notification_id: UUID) -> Notification | None:
    return Notification.objects.filter(tenant_id=tenant_id, id=notification_id).first()
