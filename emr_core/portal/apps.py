from django.apps import AppConfig


class PortalConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "emr_core.portal"

    def ready(self):
        # registers the "patient_messages" resource-name resolver
        from emr_core.portal import selectors  # noqa: F401
