# emr_core/lab/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from emr_core.audit.resource_names import register_resource_name
from emr_core.lab.models import LabResult


def lab_results_qs(*, tenant_id: UUID, patient_id: UUID | None = None, status: str | None = None) -> QuerySet[LabResult]:
    qs = LabResult.objects.select_related("patient").filter(tenant_id=tenant_id)
    if patient_id is not None:
        qs = qs.filter(patient_id=patient_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-test_date", "-created_at")


def get_lab_result(*, tenant_id: UUID, lab_result_id: UUID) -> LabResult:
    return LabResult.objects.select_related("patient").get(id=lab_result_id, tenant_id=tenant_id)


@register_resource_name("lab_results", label="Lab Result")
def lab_result_display_name(resource_id: str, tenant_id: UUID | None) -> str | None:
    try:
        rid = UUID(resource_id)
    except ValueError:
        return None

    qs = LabResult.objects.select_related("patient").filter(id=rid)
    if tenant_id is not None:
        qs = qs.filter(tenant_id=tenant_id)

    lr = qs.first()
    if lr is None:
        return None
    return f"{lr.test_name} for {lr.patient.full_name}"
