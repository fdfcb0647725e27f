# emr_core/patients/models.py
from django.db import models

from emr_core.common.models import ScopedModel


class Patient(ScopedModel):
    """
    Patient demographic record, tenant-scoped.
    """
    first_name = models.CharField(max_length=120)
    last_name = models.CharField(max_length=120)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=32, blank=True, default="")
    blood_type = models.CharField(max_length=8, blank=True, default="")

    address = models.TextField(blank=True, default="")
    phone_number = models.CharField(max_length=32, blank=True, default="")
    email = models.EmailField(blank=True, default="")

    emergency_contact_name = models.CharField(max_length=255, blank=True, default="")
    emergency_contact_phone = models.CharField(max_length=32, blank=True, default="")

    insurance_provider = models.CharField(max_length=255, blank=True, default="")
    insurance_policy_number = models.CharField(max_length=128, blank=True, default="")

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["tenant_id", "last_name", "first_name"]),
            models.Index(fields=["tenant_id", "phone_number"]),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return self.full_name
