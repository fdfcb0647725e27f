# emr_core/portal/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.common.api.pagination import DefaultPagination, paginate
from emr_core.common.permissions import PortalPermission, PortalPreferencesPermission
from emr_core.common.scope import require_tenant_id
from emr_core.patients.models import Patient
from emr_core.portal.api.serializers import (
    MessageCreateSerializer,
    PatientMessageSerializer,
    PatientMessageThreadSerializer,
    PatientPreferencesSerializer,
    PreferencesUpdateSerializer,
)
from emr_core.portal.models import PatientMessage
from emr_core.portal.selectors import get_message, messages_qs
from emr_core.portal.services import MESSAGE_RESOURCE, PREFERENCES_RESOURCE, MessageService, PreferencesService


def _uuid_or_404(pk, what: str) -> UUID:
    try:
        return UUID(str(pk))
    except ValueError:
        raise NotFound(f"{what} not found.")


class PatientMessageViewSet(viewsets.ViewSet):
    permission_classes = [PortalPermission]

    serializer_class = PatientMessageSerializer
    queryset = PatientMessage.objects.none()

    def _ctx(self, request) -> AuditContext:
        return AuditContext.from_request(request, tenant_id=require_tenant_id(request))

    @extend_schema(
        tags=["Portal"],
        responses={200: PatientMessageSerializer(many=True)},
        parameters=[
            OpenApiParameter("patient_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("unread_only", OpenApiTypes.BOOL, OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        ctx = self._ctx(request)

        patient_raw = request.query_params.get("patient_id") or None
        unread_only = (request.query_params.get("unread_only") or "").lower() in ("1", "true")

        patient_id = None
        if patient_raw:
            try:
                patient_id = UUID(str(patient_raw))
            except ValueError:
                raise ValidationError({"patient_id": ["Invalid patient_id (UUID expected)."]})

        qs = messages_qs(
            tenant_id=ctx.tenant_id,
            patient_id=patient_id,
            is_read=False if unread_only else None,
            threads_only=True,
        )
        response = paginate(request, qs, PatientMessageSerializer, paginator=DefaultPagination())

        AuditLogger(ctx).view(MESSAGE_RESOURCE, detail={"patient_id": patient_id, "unread_only": unread_only})
        return response

    @extend_schema(tags=["Portal"], request=MessageCreateSerializer, responses={201: PatientMessageSerializer})
    def create(self, request):
        ctx = self._ctx(request)

        ser = MessageCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            msg = MessageService.post_message(ctx=ctx, **ser.validated_data)
        except Patient.DoesNotExist:
            raise ValidationError({"patient_id": ["Unknown patient for this tenant."]})
        except PatientMessage.DoesNotExist:
            raise ValidationError({"parent_id": ["Unknown parent message."]})
        except ValueError as e:
            raise ValidationError({"parent_id": [str(e)]})

        return Response(PatientMessageSerializer(msg).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Portal"], responses={200: PatientMessageThreadSerializer})
    def retrieve(self, request, pk=None):
        ctx = self._ctx(request)

        try:
            msg = get_message(tenant_id=ctx.tenant_id, message_id=_uuid_or_404(pk, "Message"))
        except PatientMessage.DoesNotExist:
            raise NotFound("Message not found.")

        AuditLogger(ctx).view(MESSAGE_RESOURCE, msg.id)
        return Response(PatientMessageThreadSerializer(msg).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Portal"], request=None, responses={200: PatientMessageSerializer})
    @action(methods=["POST"], detail=True, url_path="mark-read")
    def mark_read(self, request, pk=None):
        ctx = self._ctx(request)

        try:
            msg = MessageService.mark_read(ctx=ctx, message_id=_uuid_or_404(pk, "Message"))
        except PatientMessage.DoesNotExist:
            raise NotFound("Message not found.")

        return Response(PatientMessageSerializer(msg).data, status=status.HTTP_200_OK)


class PatientPreferencesView(APIView):
    """
    GET / PATCH /portal/patients/{patient_id}/preferences/
    """
    permission_classes = [PortalPreferencesPermission]

    @extend_schema(tags=["Portal"], responses={200: PatientPreferencesSerializer})
    def get(self, request, patient_id=None):
        tenant_id = require_tenant_id(request)

        try:
            prefs = PreferencesService.get_preferences(
                tenant_id=tenant_id,
                patient_id=_uuid_or_404(patient_id, "Patient"),
            )
        except Patient.DoesNotExist:
            raise NotFound("Patient not found.")

        AuditLogger(AuditContext.from_request(request, tenant_id=tenant_id)).view(PREFERENCES_RESOURCE, prefs.patient_id)
        return Response(PatientPreferencesSerializer(prefs).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Portal"], request=PreferencesUpdateSerializer, responses={200: PatientPreferencesSerializer})
    def patch(self, request, patient_id=None):
        ctx = AuditContext.from_request(request, tenant_id=require_tenant_id(request))

        ser = PreferencesUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            prefs = PreferencesService.update_preferences(
                ctx=ctx,
                patient_id=_uuid_or_404(patient_id, "Patient"),
                data=ser.validated_data,
            )
        except Patient.DoesNotExist:
            raise NotFound("Patient not found.")

        return Response(PatientPreferencesSerializer(prefs).data, status=status.HTTP_200_OK)
