from django.apps import AppConfig


class MedicalRecordsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "emr_core.medical_records"

    def ready(self):
        # registers the "medical_records" resource-name resolver
        from emr_core.medical_records import selectors  # noqa: F401
