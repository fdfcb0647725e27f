from django.contrib import admin

from emr_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "date_of_birth", "phone_number", "tenant_id", "created_at")
    search_fields = ("first_name", "last_name", "phone_number", "email")
    list_filter = ("gender", "blood_type")
