# emr_core/lab/services.py
from __future__ import annotations

from uuid import UUID

from django.db import transaction
from django.utils import timezone

from emr_core.audit.diff import snapshot
from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.lab.models import LabResult, LabStatus
from emr_core.lab.workflow import assert_transition
from emr_core.notifications.services import NotificationDispatcher, should_notify_lab_completion
from emr_core.patients.models import Patient

RESOURCE_TYPE = "lab_results"

EDITABLE_FIELDS = {"test_name", "test_date", "result_date", "result", "unit", "notes", "is_abnormal", "status"}


class LabResultService:
    """
    Lab result write model.

    Completion notifications fire once per transition into "completed": the
    previous status is read under a row lock in the same transaction as the write.
    """

    @staticmethod
    def create_lab_result(*, ctx: AuditContext, patient_id: UUID, test_name: str, **fields) -> LabResult:
        extra = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
        status = extra.get("status", LabStatus.ORDERED)

        with transaction.atomic():
            patient = Patient.objects.get(id=patient_id, tenant_id=ctx.tenant_id)

            if status == LabStatus.COMPLETED and not extra.get("result_date"):
                extra["result_date"] = timezone.localdate()

            lab_result = LabResult.objects.create(
                tenant_id=ctx.tenant_id,
                patient=patient,
                test_name=test_name,
                **extra,
            )

        AuditLogger(ctx).create(
            RESOURCE_TYPE,
            lab_result.id,
            {"patient_id": patient.id, "test_name": test_name, "status": lab_result.status},
        )

        if should_notify_lab_completion(None, lab_result.status):
            NotificationDispatcher.lab_result_completed(ctx, lab_result)

        return lab_result

    @staticmethod
    def update_lab_result(*, ctx: AuditContext, lab_result_id: UUID, data: dict) -> LabResult:
        """
        Raises InvalidStatusTransition when leaving a terminal status.
        """
        updates = {k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS}

        with transaction.atomic():
            lab_result = LabResult.objects.select_for_update().get(id=lab_result_id, tenant_id=ctx.tenant_id)
            previous_status = lab_result.status
            before = snapshot(lab_result)

            new_status = updates.get("status", previous_status)
            assert_transition(previous_status, new_status)

            for k, v in updates.items():
                setattr(lab_result, k, v)
            if new_status == LabStatus.COMPLETED and not lab_result.result_date:
                lab_result.result_date = timezone.localdate()

            lab_result.save()
            after = snapshot(lab_result)
            notify = should_notify_lab_completion(previous_status, new_status)

        AuditLogger(ctx).update_from(RESOURCE_TYPE, lab_result.id, before, after)

        if notify:
            NotificationDispatcher.lab_result_completed(ctx, lab_result)

        return lab_result

    @staticmethod
    def delete_lab_result(*, ctx: AuditContext, lab_result_id: UUID) -> None:
        with transaction.atomic():
            lab_result = LabResult.objects.select_for_update().get(id=lab_result_id, tenant_id=ctx.tenant_id)
            deleted_id = lab_result.id
            deleted = snapshot(lab_result)
            lab_result.delete()

        AuditLogger(ctx).delete(RESOURCE_TYPE, deleted_id, {"snapshot": deleted})
