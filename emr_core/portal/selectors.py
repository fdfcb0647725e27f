# emr_core/portal/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from emr_core.audit.resource_names import register_resource_name
from emr_core.portal.models import PatientMessage


def messages_qs(
    *,
    tenant_id: UUID,
    patient_id: UUID | None = None,
    is_read: bool | None = None,
    threads_only: bool = False,
) -> QuerySet[PatientMessage]:
    qs = PatientMessage.objects.select_related("patient").filter(tenant_id=tenant_id)
    if patient_id is not None:
        qs = qs.filter(patient_id=patient_id)
    if is_read is not None:
        qs = qs.filter(is_read=is_read)
    if threads_only:
        qs = qs.filter(parent__isnull=True)
    return qs.order_by("-created_at")


def get_message(*, tenant_id: UUID, message_id: UUID) -> PatientMessage:
    return PatientMessage.objects.select_related("patient").get(id=message_id, tenant_id=tenant_id)


def message_replies(*, message: PatientMessage) -> QuerySet[PatientMessage]:
    return message.replies.order_by("created_at")


@register_resource_name("patient_messages", label="Message")
def message_display_name(resource_id: str, tenant_id: UUID | None) -> str | None:
    try:
        mid = UUID(resource_id)
    except ValueError:
        return None

    qs = PatientMessage.objects.select_related("patient", "parent").filter(id=mid)
    if tenant_id is not None:
        qs = qs.filter(tenant_id=tenant_id)

    msg = qs.first()
    if msg is None:
        return None
    subject = msg.subject or (msg.parent.subject if msg.parent else "") or "Message"
    return f"{subject} ({msg.patient.full_name})"
