# emr_core/notifications/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.common.api.pagination import DefaultPagination, paginate
from emr_core.common.permissions import NotificationPermission
from emr_core.common.scope import require_tenant_id
from emr_core.notifications.api.serializers import NotificationSerializer
from emr_core.notifications.models import Notification
from emr_core.notifications.selectors import notifications_qs
from emr_core.notifications.services import NotificationService


def _parse_uuid_param(raw: str | None, name: str) -> UUID | None:
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        raise ValidationError({name: [f"Invalid {name} (UUID expected)."]})


def _parse_bool_param(raw: str | None, name: str) -> bool | None:
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value in ("true", "1"):
        return True
    if value in ("false", "0"):
        return False
    raise ValidationError({name: ["Expected true or false."]})


class NotificationViewSet(viewsets.GenericViewSet):
    permission_classes = [NotificationPermission]

    serializer_class = NotificationSerializer
    queryset = Notification.objects.none()
    pagination_class = DefaultPagination

    @extend_schema(
        tags=["Notifications"],
        responses={200: NotificationSerializer(many=True)},
        parameters=[
            OpenApiParameter("patient_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("is_read", OpenApiTypes.BOOL, OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        tenant_id = require_tenant_id(request)

        patient_id = _parse_uuid_param(request.query_params.get("patient_id"), "patient_id")
        is_read = _parse_bool_param(request.query_params.get("is_read"), "is_read")

        qs = notifications_qs(tenant_id=tenant_id, patient_id=patient_id, is_read=is_read)
        response = paginate(request, qs, NotificationSerializer, paginator=self.paginator)

        AuditLogger(AuditContext.from_request(request, tenant_id=tenant_id)).view(
            "patient_notifications",
            detail={"patient_id": patient_id, "is_read": is_read},
        )
        return response

    @extend_schema(tags=["Notifications"], request=None, responses={200: NotificationSerializer})
    @action(methods=["POST"], detail=True, url_path="mark-read")
    def mark_read(self, request, pk=None):
        tenant_id = require_tenant_id(request)
        notification_id = _parse_uuid_param(pk, "id")

        ctx = AuditContext.from_request(request, tenant_id=tenant_id)
        try:
            notif = NotificationService.mark_read(ctx=ctx, notification_id=notification_id)
        except Notification.DoesNotExist:
            raise NotFound("Notification not found.")

        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)
