from django.apps import AppConfig


class PatientsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "emr_core.patients"

    def ready(self):
        # registers the "patients" resource-name resolver
        from emr_core.patients import selectors  # noqa: F401
