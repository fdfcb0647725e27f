# emr_core/prescriptions/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from emr_core.common.models import ScopedModel


class PrescriptionStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    DISCONTINUED = "discontinued", "Discontinued"


class Prescription(ScopedModel):
    medical_record = models.ForeignKey(
        "medical_records.MedicalRecord",
        on_delete=models.CASCADE,
        related_name="prescriptions",
    )
    prescribed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="prescriptions",
    )

    medication_name = models.CharField(max_length=255)
    dosage = models.CharField(max_length=64)
    frequency = models.CharField(max_length=64)
    duration = models.CharField(max_length=64, blank=True, default="")
    instructions = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=16,
        choices=PrescriptionStatus.choices,
        default=PrescriptionStatus.ACTIVE,
        db_index=True,
    )
    prescribed_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "prescriptions"
        indexes = [
            models.Index(fields=["tenant_id", "medical_record", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.medication_name} {self.dosage} ({self.status})"
