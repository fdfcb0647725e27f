# emr_core/portal/services.py
from __future__ import annotations

from uuid import UUID

from django.db import transaction

from emr_core.audit.diff import compute_changes, snapshot
from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.notifications.services import NotificationDispatcher
from emr_core.patients.models import Patient
from emr_core.portal.models import PatientMessage, PatientPreferences

MESSAGE_RESOURCE = "patient_messages"
PREFERENCES_RESOURCE = "patient_preferences"

PREFERENCE_FIELDS = ("notification_preferences", "portal_theme", "language_preference", "time_zone")


class MessageService:
    @staticmethod
    def post_message(
        *,
        ctx: AuditContext,
        patient_id: UUID,
        sender_type: str,
        message: str,
        subject: str = "",
        parent_id: UUID | None = None,
    ) -> PatientMessage:
        """
        Raises Patient.DoesNotExist / PatientMessage.DoesNotExist for unknown ids,
        ValueError when the parent belongs to another patient.
        """
        with transaction.atomic():
            patient = Patient.objects.get(id=patient_id, tenant_id=ctx.tenant_id)

            parent = None
            if parent_id is not None:
                parent = PatientMessage.objects.get(id=parent_id, tenant_id=ctx.tenant_id)
                if parent.patient_id != patient.id:
                    raise ValueError("Parent message belongs to a different patient.")
                # Only thread starters carry a subject.
                subject = ""

            msg = PatientMessage.objects.create(
                tenant_id=ctx.tenant_id,
                patient=patient,
                sender_type=sender_type,
                sender_user_id=ctx.actor_user_id,
                subject=subject or "",
                message=message,
                parent=parent,
            )

        AuditLogger(ctx).create(
            MESSAGE_RESOURCE,
            msg.id,
            {"patient_id": patient.id, "sender_type": sender_type, "parent_id": parent.id if parent else None},
        )
        NotificationDispatcher.message_posted(ctx, msg)
        return msg

    @staticmethod
    def mark_read(*, ctx: AuditContext, message_id: UUID) -> PatientMessage:
        """Idempotent; repeated calls keep the first read_at."""
        with transaction.atomic():
            msg = PatientMessage.objects.select_for_update().get(id=message_id, tenant_id=ctx.tenant_id)
            before = snapshot(msg, fields=["is_read", "read_at"])
            flipped = msg.mark_read()
            if flipped:
                msg.save(update_fields=["is_read", "read_at", "updated_at"])

        if flipped:
            changes = compute_changes(before, snapshot(msg, fields=["is_read", "read_at"]))
            AuditLogger(ctx).update(MESSAGE_RESOURCE, msg.id, changes)

        return msg


class PreferencesService:
    @staticmethod
    @transaction.atomic
    def get_preferences(*, tenant_id: UUID, patient_id: UUID) -> PatientPreferences:
        """Creates the defaults on first access."""
        patient = Patient.objects.get(id=patient_id, tenant_id=tenant_id)
        prefs, _ = PatientPreferences.objects.get_or_create(
            patient=patient,
            defaults={"tenant_id": tenant_id},
        )
        return prefs

    @staticmethod
    def update_preferences(*, ctx: AuditContext, patient_id: UUID, data: dict) -> PatientPreferences:
        with transaction.atomic():
            PreferencesService.get_preferences(tenant_id=ctx.tenant_id, patient_id=patient_id)
            prefs = PatientPreferences.objects.select_for_update().get(patient_id=patient_id, tenant_id=ctx.tenant_id)
            before = snapshot(prefs, fields=PREFERENCE_FIELDS)

            channels = data.get("notification_preferences")
            if channels is not None:
                prefs.notification_preferences = {**(prefs.notification_preferences or {}), **channels}
            for field in ("portal_theme", "language_preference", "time_zone"):
                if field in data:
                    setattr(prefs, field, data[field])

            prefs.save()
            after = snapshot(prefs, fields=PREFERENCE_FIELDS)

        AuditLogger(ctx).update_from(PREFERENCES_RESOURCE, patient_id, before, after)
        return prefs
