from django.contrib import admin

from emr_core.portal.models import PatientMessage, PatientPreferences


@admin.register(PatientMessage)
class PatientMessageAdmin(admin.ModelAdmin):
    list_display = ("subject", "patient", "sender_type", "is_read", "created_at")
    list_filter = ("sender_type", "is_read")
    search_fields = ("subject", "message")


@admin.register(PatientPreferences)
class PatientPreferencesAdmin(admin.ModelAdmin):
    list_display = ("patient", "portal_theme", "language_preference", "time_zone")
