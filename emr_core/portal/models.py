# emr_core/portal/models.py
from __future__ import annotations

from django.db import models
from django.utils import timezone

from emr_core.common.models import ScopedModel


class SenderType(models.TextChoices):
    PATIENT = "patient", "Patient"
    STAFF = "staff", "Staff"
    DOCTOR = "doctor", "Doctor"


def default_notification_preferences() -> dict:
    return {"email": True, "sms": False, "push": False}


class PatientMessage(ScopedModel):
    """
    Portal message thread entry. Replies point at the thread's first message
    and carry no subject of their own.
    """
    patient = models.ForeignKey(
        "patients.Patient",
        on_delete=models.CASCADE,
        related_name="messages",
    )
    sender_type = models.CharField(max_length=16, choices=SenderType.choices)
    sender_user_id = models.IntegerField(null=True, blank=True)

    subject = models.CharField(max_length=255, blank=True, default="")
    message = models.TextField()

    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="replies",
    )

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "patient_messages"
        indexes = [
            models.Index(fields=["tenant_id", "patient", "is_read"]),
        ]

    def mark_read(self) -> bool:
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = timezone.now()
        return True

    def __str__(self) -> str:
        return self.subject or f"Reply from {self.sender_type}"


class PatientPreferences(ScopedModel):
    patient = models.OneToOneField(
        "patients.Patient",
        on_delete=models.CASCADE,
        related_name="preferences",
    )
    notification_preferences = models.JSONField(default=default_notification_preferences)
    portal_theme = models.CharField(max_length=16, default="light")
    language_preference = models.CharField(max_length=16, default="en")
    time_zone = models.CharField(max_length=64, default="UTC")

    class Meta:
        db_table = "patient_preferences"
