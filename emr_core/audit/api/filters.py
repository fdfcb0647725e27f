# emr_core/audit/api/filters.py
import django_filters

from emr_core.audit.models import AuditAction, AuditEvent


class AuditEventFilter(django_filters.FilterSet):
    """
    Validates the audit list query string.
    The view turns the cleaned values into an AuditFilter for the selector.
    """
    resource_type = django_filters.CharFilter()
    resource_id = django_filters.CharFilter()
    actor_user_id = django_filters.NumberFilter(field_name="actor_user_id")
    action = django_filters.ChoiceFilter(choices=AuditAction.choices)
    created_from = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_to = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = AuditEvent
        fields = ["resource_type", "resource_id", "actor_user_id", "action", "created_from", "created_to"]
