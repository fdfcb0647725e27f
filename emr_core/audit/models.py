# emr_core/audit/models.py
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class AuditAction(models.TextChoices):
    CREATE = "create", "Create"
    UPDATE = "update", "Update"
    DELETE = "delete", "Delete"
    VIEW = "view", "View"
    LOGIN = "login", "Login"
    LOGOUT = "logout", "Logout"


class ImmutableAuditEventError(RuntimeError):
    """Raised on any attempt to modify or remove a written audit event."""


class AuditEventQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableAuditEventError("Audit events are append-only and cannot be updated.")

    def delete(self):
        raise ImmutableAuditEventError("Audit events are append-only and cannot be deleted.")


class AuditEvent(models.Model):
    """
    Immutable audit record: one action taken by an actor against a resource.
    (resource_type, resource_id) is a weak reference for lookup/display only.
    """
    id = models.BigAutoField(primary_key=True)

    tenant_id = models.UUIDField(null=True, blank=True, db_index=True)

    actor_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="audit_events",
        null=True,
        blank=True,
    )

    action = models.CharField(max_length=16, choices=AuditAction.choices, db_index=True)
    resource_type = models.CharField(max_length=64, db_index=True)  # e.g. "patients", "lab_results"
    resource_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)

    details = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    ip_address = models.CharField(max_length=64, null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = AuditEventQuerySet.as_manager()

    class Meta:
        db_table = "audit_logs"
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=["tenant_id", "created_at"]),
            models.Index(fields=["resource_type", "resource_id"]),
            models.Index(fields=["tenant_id", "actor_user"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableAuditEventError("Audit events are append-only and cannot be updated.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableAuditEventError("Audit events are append-only and cannot be deleted.")

    def __str__(self) -> str:
        return f"{self.action} {self.resource_type}/{self.resource_id or '*'}"
