# emr_core/iam/models.py
import uuid
from django.conf import settings
from django.db import models

from emr_core.tenants.models import Tenant


class RoleCode(models.TextChoices):
    ADMIN = "ADMIN", "Administrator"
    DOCTOR = "DOCTOR", "Doctor"
    NURSE = "NURSE", "Nurse"
    RECEPTION = "RECEPTION", "Reception"
    LAB = "LAB", "Lab"
    BILLING = "BILLING", "Billing"
    READONLY = "READONLY", "Read only"


class TenantMembership(models.Model):
    """
    Assigns a user to a tenant with a role.
    This is the enforcement point for tenant-level access.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name="memberships")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tenant_memberships")
    role = models.CharField(max_length=16, choices=RoleCode.choices, default=RoleCode.READONLY)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_tenant_membership"
        constraints = [
            models.UniqueConstraint(fields=["tenant", "user"], name="uq_tenant_user_membership"),
        ]
        indexes = [
            models.Index(fields=["tenant", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.tenant_id} ({self.role})"
