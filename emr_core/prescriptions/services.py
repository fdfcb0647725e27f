# emr_core/prescriptions/services.py
from __future__ import annotations

from uuid import UUID

from django.db import transaction

from emr_core.audit.diff import snapshot
from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.medical_records.models import MedicalRecord
from emr_core.prescriptions.models import Prescription, PrescriptionStatus

RESOURCE_TYPE = "prescriptions"

EDITABLE_FIELDS = {"medication_name", "dosage", "frequency", "duration", "instructions", "status"}


class PrescriptionClosed(ValueError):
    """A completed or discontinued prescription cannot be edited."""


class PrescriptionService:
    """
    Prescriptions hang off a medical record. Every update is audited with the
    field-level change-set; finished prescriptions are read-only.
    """

    @staticmethod
    def create_prescription(
        *,
        ctx: AuditContext,
        medical_record_id: UUID,
        medication_name: str,
        dosage: str,
        frequency: str,
        **fields,
    ) -> Prescription:
        extra = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}

        with transaction.atomic():
            record = MedicalRecord.objects.get(id=medical_record_id, tenant_id=ctx.tenant_id)
            rx = Prescription.objects.create(
                tenant_id=ctx.tenant_id,
                medical_record=record,
                prescribed_by_id=ctx.actor_user_id,
                medication_name=medication_name,
                dosage=dosage,
                frequency=frequency,
                **extra,
            )

        AuditLogger(ctx).create(
            RESOURCE_TYPE,
            rx.id,
            {
                "medical_record_id": record.id,
                "patient_id": record.patient_id,
                "medication_name": medication_name,
                "dosage": dosage,
                "frequency": frequency,
                "status": rx.status,
            },
        )
        return rx

    @staticmethod
    def update_prescription(*, ctx: AuditContext, prescription_id: UUID, data: dict) -> Prescription:
        updates = {k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS}

        with transaction.atomic():
            rx = Prescription.objects.select_for_update().get(id=prescription_id, tenant_id=ctx.tenant_id)
            if rx.status != PrescriptionStatus.ACTIVE and any(getattr(rx, k) != v for k, v in updates.items()):
                raise PrescriptionClosed(f"Prescription is {rx.status} and can no longer be changed.")

            before = snapshot(rx)
            for k, v in updates.items():
                setattr(rx, k, v)
            rx.save()
            after = snapshot(rx)

        AuditLogger(ctx).update_from(RESOURCE_TYPE, rx.id, before, after)
        return rx

    @staticmethod
    def delete_prescription(*, ctx: AuditContext, prescription_id: UUID) -> None:
        with transaction.atomic():
            rx = Prescription.objects.select_for_update().get(id=prescription_id, tenant_id=ctx.tenant_id)
            deleted_id = rx.id
            deleted = snapshot(rx)
            rx.delete()

        AuditLogger(ctx).delete(RESOURCE_TYPE, deleted_id, {"snapshot": deleted})
