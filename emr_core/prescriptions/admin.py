from django.contrib import admin

from emr_core.prescriptions.models import Prescription


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ("medication_name", "dosage", "frequency", "status", "prescribed_at", "tenant_id")
    list_filter = ("status",)
    search_fields = ("medication_name", "medical_record__patient__last_name")
