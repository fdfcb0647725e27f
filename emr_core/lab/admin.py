from django.contrib import admin

from emr_core.lab.models import LabResult


@admin.register(LabResult)
class LabResultAdmin(admin.ModelAdmin):
    list_display = ("test_name", "patient", "status", "is_abnormal", "test_date", "result_date", "tenant_id")
    list_filter = ("status", "is_abnormal")
    search_fields = ("test_name", "patient__last_name", "patient__first_name")
