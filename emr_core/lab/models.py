# emr_core/lab/models.py
from django.db import models
from django.utils import timezone

from emr_core.common.models import ScopedModel


class LabStatus(models.TextChoices):
    ORDERED = "ordered", "Ordered"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class LabResult(ScopedModel):
    patient = models.ForeignKey(
        "patients.Patient",
        on_delete=models.CASCADE,
        related_name="lab_results",
    )

    test_name = models.CharField(max_length=255)
    test_date = models.DateField(default=timezone.localdate)
    result_date = models.DateField(null=True, blank=True)

    result = models.TextField(blank=True, default="")
    unit = models.CharField(max_length=32, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    is_abnormal = models.BooleanField(default=False)

    status = models.CharField(
        max_length=16,
        choices=LabStatus.choices,
        default=LabStatus.ORDERED,
        db_index=True,
    )

    class Meta:
        db_table = "lab_results"
        indexes = [
            models.Index(fields=["tenant_id", "patient", "status"]),
            models.Index(fields=["tenant_id", "test_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.test_name} ({self.status})"
