# emr_core/audit/admin.py
from django.contrib import admin

from emr_core.audit.models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "action",
        "resource_type",
        "resource_id",
        "tenant_id",
        "actor_user",
        "ip_address",
    )
    list_filter = ("action", "resource_type", "tenant_id")
    search_fields = ("resource_type", "resource_id", "ip_address")
    readonly_fields = [f.name for f in AuditEvent._meta.fields]
    ordering = ("-created_at", "-id")

    # Append-only: the admin is a viewer.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
