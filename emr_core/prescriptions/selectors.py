# emr_core/prescriptions/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from emr_core.audit.resource_names import register_resource_name
from emr_core.prescriptions.models import Prescription


def prescriptions_qs(
    *,
    tenant_id: UUID,
    patient_id: UUID | None = None,
    medical_record_id: UUID | None = None,
    status: str | None = None,
) -> QuerySet[Prescription]:
    qs = Prescription.objects.select_related("medical_record__patient").filter(tenant_id=tenant_id)
    if patient_id is not None:
        qs = qs.filter(medical_record__patient_id=patient_id)
    if medical_record_id is not None:
        qs = qs.filter(medical_record_id=medical_record_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-prescribed_at")


def get_prescription(*, tenant_id: UUID, prescription_id: UUID) -> Prescription:
    return Prescription.objects.select_related("medical_record__patient").get(id=prescription_id, tenant_id=tenant_id)


@register_resource_name("prescriptions", label="Prescription")
def prescription_display_name(resource_id: str, tenant_id: UUID | None) -> str | None:
    try:
        rid = UUID(resource_id)
    except ValueError:
        return None

    qs = Prescription.objects.select_related("medical_record__patient").filter(id=rid)
    if tenant_id is not None:
        qs = qs.filter(tenant_id=tenant_id)

    rx = qs.first()
    if rx is None:
        return None
    return f"{rx.medication_name} {rx.dosage} for {rx.medical_record.patient.full_name}"
