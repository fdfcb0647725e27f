# emr_core/medical_records/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from emr_core.common.models import ScopedModel


class MedicalRecord(ScopedModel):
    """One clinical visit: complaint, diagnosis and plan."""

    patient = models.ForeignKey(
        "patients.Patient",
        on_delete=models.CASCADE,
        related_name="medical_records",
    )
    doctor_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="medical_records",
    )

    visit_date = models.DateField(default=timezone.localdate, db_index=True)
    chief_complaint = models.CharField(max_length=255)
    diagnosis = models.TextField(blank=True, default="")
    treatment_plan = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")
    follow_up_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "medical_records"
        indexes = [
            models.Index(fields=["tenant_id", "patient", "visit_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.chief_complaint} ({self.visit_date})"
