from django.apps import AppConfig


class PrescriptionsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "emr_core.prescriptions"

    def ready(self):
        # registers the "prescriptions" resource-name resolver
        from emr_core.prescriptions import selectors  # noqa: F401
