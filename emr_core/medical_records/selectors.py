# emr_core/medical_records/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from emr_core.audit.resource_names import register_resource_name
from emr_core.medical_records.models import MedicalRecord


def medical_records_qs(*, tenant_id: UUID, patient_id: UUID | None = None) -> QuerySet[MedicalRecord]:
    qs = MedicalRecord.objects.select_related("patient").filter(tenant_id=tenant_id)
    if patient_id is not None:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("-visit_date", "-created_at")


def get_medical_record(*, tenant_id: UUID, record_id: UUID) -> MedicalRecord:
    return MedicalRecord.objects.select_related("patient").get(id=record_id, tenant_id=tenant_id)


@register_resource_name("medical_records", label="Medical Record")
def medical_record_display_name(resource_id: str, tenant_id: UUID | None) -> str | None:
    try:
        rid = UUID(resource_id)
    except ValueError:
        return None

    qs = MedicalRecord.objects.select_related("patient").filter(id=rid)
    if tenant_id is not None:
        qs = qs.filter(tenant_id=tenant_id)

    record = qs.first()
    if record is None:
        return None
    return f"{record.patient.full_name} visit on {record.visit_date.isoformat()}"
