# emr_core/patients/services.py
from __future__ import annotations

from uuid import UUID

from django.db import router, transaction
from django.db.models.deletion import Collector

from emr_core.audit.diff import snapshot
from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.patients.models import Patient

RESOURCE_TYPE = "patients"

EDITABLE_FIELDS = {
    "first_name",
    "last_name",
    "date_of_birth",
    "gender",
    "blood_type",
    "address",
    "phone_number",
    "email",
    "emergency_contact_name",
    "emergency_contact_phone",
    "insurance_provider",
    "insurance_policy_number",
}


def _cascaded_ids(instance) -> dict[str, list[str]]:
    """Ids of the rows a delete of `instance` takes with it, keyed by table."""
    collector = Collector(using=router.db_for_write(type(instance)))
    collector.collect([instance])

    found: dict[str, set[str]] = {}
    for model, objs in collector.data.items():
        found.setdefault(model._meta.db_table, set()).update(str(o.pk) for o in objs)
    for qs in collector.fast_deletes:
        found.setdefault(qs.model._meta.db_table, set()).update(str(pk) for pk in qs.values_list("pk", flat=True))

    found.get(instance._meta.db_table, set()).discard(str(instance.pk))
    return {table: sorted(ids) for table, ids in found.items() if ids}


class PatientService:
    """
    Write model for patients. Audit events are written after commit.
    """

    @staticmethod
    def create_patient(*, ctx: AuditContext, first_name: str, last_name: str, **fields) -> Patient:
        extra = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}

        with transaction.atomic():
            patient = Patient.objects.create(
                tenant_id=ctx.tenant_id,
                first_name=first_name,
                last_name=last_name,
                **extra,
            )

        AuditLogger(ctx).create(
            RESOURCE_TYPE,
            patient.id,
            {"first_name": patient.first_name, "last_name": patient.last_name},
        )
        return patient

    @staticmethod
    def update_patient(*, ctx: AuditContext, patient_id: UUID, data: dict) -> Patient:
        updates = {k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS}

        with transaction.atomic():
            patient = Patient.objects.select_for_update().get(id=patient_id, tenant_id=ctx.tenant_id)
            before = snapshot(patient)

            for k, v in updates.items():
                setattr(patient, k, v)
            patient.save()

            after = snapshot(patient)

        AuditLogger(ctx).update_from(RESOURCE_TYPE, patient.id, before, after)
        return patient

    @staticmethod
    def delete_patient(*, ctx: AuditContext, patient_id: UUID) -> None:
        with transaction.atomic():
            patient = Patient.objects.select_for_update().get(id=patient_id, tenant_id=ctx.tenant_id)
            deleted_id = patient.id
            detail = {"snapshot": snapshot(patient)}
            cascaded = _cascaded_ids(patient)
            if cascaded:
                detail["cascaded"] = cascaded
            patient.delete()

        AuditLogger(ctx).delete(RESOURCE_TYPE, deleted_id, detail)
