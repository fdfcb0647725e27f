# emr_core/medical_records/services.py
from __future__ import annotations

from uuid import UUID

from django.db import transaction

from emr_core.audit.diff import snapshot
from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.medical_records.models import MedicalRecord
from emr_core.patients.models import Patient

RESOURCE_TYPE = "medical_records"

EDITABLE_FIELDS = {"visit_date", "chief_complaint", "diagnosis", "treatment_plan", "notes", "follow_up_date"}


class MedicalRecordService:
    @staticmethod
    def create_record(*, ctx: AuditContext, patient_id: UUID, chief_complaint: str, **fields) -> MedicalRecord:
        extra = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}

        with transaction.atomic():
            patient = Patient.objects.get(id=patient_id, tenant_id=ctx.tenant_id)
            record = MedicalRecord.objects.create(
                tenant_id=ctx.tenant_id,
                patient=patient,
                doctor_user_id=ctx.actor_user_id,
                chief_complaint=chief_complaint,
                **extra,
            )

        AuditLogger(ctx).create(
            RESOURCE_TYPE,
            record.id,
            {"patient_id": patient.id, "chief_complaint": chief_complaint},
        )
        return record

    @staticmethod
    def update_record(*, ctx: AuditContext, record_id: UUID, data: dict) -> MedicalRecord:
        updates = {k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS}

        with transaction.atomic():
            record = MedicalRecord.objects.select_for_update().get(id=record_id, tenant_id=ctx.tenant_id)
            before = snapshot(record)

            for k, v in updates.items():
                setattr(record, k, v)
            record.save()

            after = snapshot(record)

        AuditLogger(ctx).update_from(RESOURCE_TYPE, record.id, before, after)
        return record

    @staticmethod
    def delete_record(*, ctx: AuditContext, record_id: UUID) -> None:
        """Prescriptions written during the visit go with it."""
        with transaction.atomic():
            record = MedicalRecord.objects.select_for_update().get(id=record_id, tenant_id=ctx.tenant_id)
            deleted_id = record.id
            detail = {
                "snapshot": snapshot(record),
                "prescription_ids": sorted(str(pk) for pk in record.prescriptions.values_list("id", flat=True)),
            }
            record.delete()

        AuditLogger(ctx).delete(RESOURCE_TYPE, deleted_id, detail)
