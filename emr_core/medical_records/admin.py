from django.contrib import admin

from emr_core.medical_records.models import MedicalRecord


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ("chief_complaint", "patient", "visit_date", "follow_up_date", "tenant_id")
    search_fields = ("chief_complaint", "diagnosis", "patient__last_name")
