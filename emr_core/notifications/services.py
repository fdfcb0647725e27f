# emr_core/notifications/services.py
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction

from emr_core.audit.diff import compute_changes, snapshot
from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.common.side_effects import run_best_effort
from emr_core.notifications.models import Notification, NotificationType

logger = logging.getLogger(__name__)

LAB_COMPLETED = "completed"

LAB_RESULT_TITLE = "Lab Result Available"
LAB_RESULT_MESSAGE = "Your lab test results are now available. Please check your lab results section."
MESSAGE_TITLE = "New Message"


def should_notify_lab_completion(previous_status: Optional[str], new_status: Optional[str]) -> bool:
    """
    True only on the transition into "completed".
    previous_status is None for a freshly created result.
    """
    return new_status == LAB_COMPLETED and previous_status != LAB_COMPLETED


class NotificationService:
    @staticmethod
    @transaction.atomic
    def create_notification(
        *,
        tenant_id: UUID,
        patient_id: UUID | None,
        title: str,
        message: str = "",
        type: str,
        reference_type: str = "",
        reference_id: str = "",
    ) -> Notification:
        return Notification.objects.create(
            tenant_id=tenant_id,
            patient_id=patient_id,
            title=title,
            message=message,
            type=type,
            reference_type=reference_type,
            reference_id=str(reference_id or ""),
        )

    @staticmethod
    def mark_read(*, ctx: AuditContext, notification_id: UUID) -> Notification:
        """
        Idempotent. Only the call that flips is_read writes an audit event.
        Raises Notification.DoesNotExist for ids outside the tenant.
        """
        with transaction.atomic():
            notif = Notification.objects.select_for_update().get(id=notification_id, tenant_id=ctx.tenant_id)
            before = snapshot(notif, fields=["is_read", "read_at"])
            flipped = notif.mark_read()
            if flipped:
                notif.save(update_fields=["is_read", "read_at", "updated_at"])

        if flipped:
            changes = compute_changes(before, snapshot(notif, fields=["is_read", "read_at"]))
            AuditLogger(ctx).update("patient_notifications", notif.id, changes)

        return notif


class NotificationDispatcher:
    """
    Notification side effects of committed domain writes.
    Never raises: failures are logged and the primary write stands.
    """

    @staticmethod
    def lab_result_completed(ctx: AuditContext, lab_result) -> None:
        logger.debug("Dispatching lab completion notification lab_result_id=%s actor=%s", lab_result.id, ctx.actor_user_id)
        run_best_effort(
            "notify.lab_result_completed",
            NotificationService.create_notification,
            tenant_id=lab_result.tenant_id,
            patient_id=lab_result.patient_id,
            title=LAB_RESULT_TITLE,
            message=LAB_RESULT_MESSAGE,
            type=NotificationType.LAB_RESULT,
            reference_type="lab_result",
            reference_id=str(lab_result.id),
        )

    @staticmethod
    def message_posted(ctx: AuditContext, message) -> None:
        logger.debug("Dispatching message notification message_id=%s actor=%s", message.id, ctx.actor_user_id)
        sender = message.sender_type
        subject = message.subject or "Reply to message"
        run_best_effort(
            "notify.message_posted",
            NotificationService.create_notification,
            tenant_id=message.tenant_id,
            patient_id=message.patient_id,
            title=MESSAGE_TITLE,
            message=f"New message from {sender}: {subject}",
            type=NotificationType.MESSAGE,
            reference_type="patient_messages",
            reference_id=str(message.id),
        )
