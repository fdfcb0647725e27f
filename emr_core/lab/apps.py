from django.apps import AppConfig


class LabConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "emr_core.lab"

    def ready(self):
        # registers the "lab_results" resource-name resolver
        from emr_core.lab import selectors  # noqa: F401
