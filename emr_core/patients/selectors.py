# emr_core/patients/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Q, QuerySet

from emr_core.audit.resource_names import register_resource_name
from emr_core.patients.models import Patient


def get_patient(*, tenant_id: UUID, patient_id: UUID) -> Patient:
    return Patient.objects.get(id=patient_id, tenant_id=tenant_id)


def search_patients(*, tenant_id: UUID, q: str | None = None) -> QuerySet[Patient]:
    qs = Patient.objects.filter(tenant_id=tenant_id)

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(first_name__icontains=qv)
            | Q(last_name__icontains=qv)
            | Q(phone_number__icontains=qv)
            | Q(email__icontains=qv)
        )

    return qs.order_by("last_name", "first_name", "id")


@register_resource_name("patients", label="Patient")
def patient_display_name(resource_id: str, tenant_id: UUID | None) -> str | None:
    try:
        pid = UUID(resource_id)
    except ValueError:
        return None

    qs = Patient.objects.filter(id=pid)
    if tenant_id is not None:
        qs = qs.filter(tenant_id=tenant_id)

    patient = qs.only("first_name", "last_name").first()
    return patient.full_name if patient else None
