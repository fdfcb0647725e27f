# emr_core/audit/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.utils.urls import remove_query_param, replace_query_param

from emr_core.audit.api.filters import AuditEventFilter
from emr_core.audit.api.serializers import AuditEventDetailSerializer, AuditEventSerializer
from emr_core.audit.config import AuditSettings
from emr_core.audit.models import AuditEvent
from emr_core.audit.selectors import AuditFilter, AuditPage, get_audit_event, list_audit_events
from emr_core.common.permissions import AuditPermission
from emr_core.common.scope import require_tenant_id


def _positive_int_param(request, name: str) -> int | None:
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError({name: ["A valid integer is required."]})
    if value < 1:
        raise ValidationError({name: ["Ensure this value is greater than or equal to 1."]})
    return value


def _page_link(request, page: AuditPage, number: int) -> str | None:
    last = max(1, -(-page.total_count // page.page_size))
    if number < 1 or number > last:
        return None
    url = replace_query_param(request.build_absolute_uri(), "page_size", page.page_size)
    if number == 1:
        return remove_query_param(url, "page")
    return replace_query_param(url, "page", number)


def _filters_from_query(request, tenant_id) -> AuditFilter:
    fs = AuditEventFilter(request.query_params, queryset=AuditEvent.objects.none())
    if not fs.is_valid():
        raise ValidationError({field: [str(m) for m in msgs] for field, msgs in fs.errors.items()})

    cd = fs.form.cleaned_data
    actor = cd.get("actor_user_id")

    return AuditFilter(
        tenant_id=tenant_id,
        resource_type=cd.get("resource_type") or None,
        resource_id=cd.get("resource_id") or None,
        actor_user_id=int(actor) if actor is not None else None,
        action=cd.get("action") or None,
        created_from=cd.get("created_from"),
        created_to=cd.get("created_to"),
    )


class AuditEventViewSet(viewsets.GenericViewSet):
    """
    Read-only access to the audit trail of the request tenant.
    """
    permission_classes = [AuditPermission]

    serializer_class = AuditEventSerializer
    queryset = AuditEvent.objects.none()

    @extend_schema(
        tags=["Audit"],
        responses={200: AuditEventSerializer(many=True)},
        parameters=[
            OpenApiParameter("resource_type", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="Filter by resource type (e.g. patients, lab_results)."),
            OpenApiParameter("resource_id", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="Filter by resource id."),
            OpenApiParameter("actor_user_id", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False,
                             description="Filter by actor user id."),
            OpenApiParameter("action", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="create | update | delete | view | login | logout"),
            OpenApiParameter("created_from", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False,
                             description="Inclusive lower bound on created_at (ISO-8601)."),
            OpenApiParameter("created_to", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False,
                             description="Inclusive upper bound on created_at (ISO-8601)."),
            OpenApiParameter("page", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False,
                             description="1-based page number."),
            OpenApiParameter("page_size", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False,
                             description="Events per page; capped by EMR_AUDIT MAX_PAGE_SIZE."),
        ],
    )
    def list(self, request):
        tenant_id = require_tenant_id(request)
        filters = _filters_from_query(request, tenant_id)

        page = list_audit_events(
            filters,
            page=_positive_int_param(request, "page") or 1,
            page_size=_positive_int_param(request, "page_size"),
            config=AuditSettings.from_settings(),
        )
        return Response(
            {
                "count": page.total_count,
                "next": _page_link(request, page, page.page + 1),
                "previous": _page_link(request, page, page.page - 1),
                "results": AuditEventSerializer(page.events, many=True).data,
            }
        )

    @extend_schema(tags=["Audit"], responses={200: AuditEventDetailSerializer})
    def retrieve(self, request, pk=None):
        tenant_id = require_tenant_id(request)

        try:
            event_id = int(pk)
        except (TypeError, ValueError):
            raise NotFound("Audit event not found.")

        event = get_audit_event(event_id=event_id, tenant_id=tenant_id)
        if event is None:
            raise NotFound("Audit event not found.")

        return Response(AuditEventDetailSerializer(event).data, status=status.HTTP_200_OK)
