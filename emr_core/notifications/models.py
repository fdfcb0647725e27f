# emr_core/notifications/models.py
from __future__ import annotations

from django.db import models
from django.utils import timezone

from emr_core.common.models import ScopedModel


class NotificationType(models.TextChoices):
    LAB_RESULT = "lab_result", "Lab result"
    MESSAGE = "message", "Message"


class Notification(ScopedModel):
    """
    In-app notification addressed to a patient.
    reference_type/reference_id point loosely at the record that triggered it.
    """
    patient = models.ForeignKey(
        "patients.Patient",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )

    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")
    type = models.CharField(max_length=32, choices=NotificationType.choices, db_index=True)

    reference_type = models.CharField(max_length=64, blank=True, default="")
    reference_id = models.CharField(max_length=64, blank=True, default="", db_index=True)

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "patient_notifications"
        ordering = ("-created_at",)
        indexes = [
            models.Index(fields=["tenant_id", "patient", "is_read"]),
            models.Index(fields=["reference_type", "reference_id"]),
        ]

    def mark_read(self) -> bool:
        """Returns True only when the flag actually flipped."""
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = timezone.now()
        return True

    def __str__(self) -> str:
        return f"{self.type}: {self.title}"
