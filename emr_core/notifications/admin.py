from django.contrib import admin

from emr_core.notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "type", "patient", "tenant_id", "is_read", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("title", "message", "reference_id")
    readonly_fields = ("created_at", "updated_at", "read_at")
