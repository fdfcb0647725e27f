# emr_core/prescriptions/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.common.api.exceptions import ConflictError
from emr_core.common.api.pagination import DefaultPagination, paginate
from emr_core.common.permissions import PrescriptionPermission
from emr_core.common.scope import require_tenant_id
from emr_core.medical_records.models import MedicalRecord
from emr_core.prescriptions.api.serializers import (
    PrescriptionCreateSerializer,
    PrescriptionSerializer,
    PrescriptionUpdateSerializer,
)
from emr_core.prescriptions.models import Prescription, PrescriptionStatus
from emr_core.prescriptions.selectors import get_prescription, prescriptions_qs
from emr_core.prescriptions.services import RESOURCE_TYPE, PrescriptionClosed, PrescriptionService


def _uuid_query_param(request, name: str) -> UUID | None:
    raw = request.query_params.get(name)
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        raise ValidationError({name: [f"Invalid {name} (UUID expected)."]})


def _rx_uuid_or_404(pk) -> UUID:
    try:
        return UUID(str(pk))
    except ValueError:
        raise NotFound("Prescription not found.")


class PrescriptionViewSet(viewsets.ViewSet):
    permission_classes = [PrescriptionPermission]

    serializer_class = PrescriptionSerializer
    queryset = Prescription.objects.none()

    def _ctx(self, request) -> AuditContext:
        return AuditContext.from_request(request, tenant_id=require_tenant_id(request))

    @extend_schema(
        tags=["Prescriptions"],
        responses={200: PrescriptionSerializer(many=True)},
        parameters=[
            OpenApiParameter("patient_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("medical_record_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("status", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="active | completed | discontinued"),
        ],
    )
    def list(self, request):
        ctx = self._ctx(request)

        patient_id = _uuid_query_param(request, "patient_id")
        medical_record_id = _uuid_query_param(request, "medical_record_id")
        status_q = request.query_params.get("status") or None
        if status_q and status_q not in PrescriptionStatus.values:
            raise ValidationError({"status": [f"Unknown status: {status_q}"]})

        qs = prescriptions_qs(
            tenant_id=ctx.tenant_id,
            patient_id=patient_id,
            medical_record_id=medical_record_id,
            status=status_q,
        )
        response = paginate(request, qs, PrescriptionSerializer, paginator=DefaultPagination())

        AuditLogger(ctx).view(
            RESOURCE_TYPE,
            detail={"patient_id": patient_id, "medical_record_id": medical_record_id, "status": status_q},
        )
        return response

    @extend_schema(tags=["Prescriptions"], request=PrescriptionCreateSerializer, responses={201: PrescriptionSerializer})
    def create(self, request):
        ctx = self._ctx(request)

        ser = PrescriptionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            rx = PrescriptionService.create_prescription(ctx=ctx, **ser.validated_data)
        except MedicalRecord.DoesNotExist:
            raise ValidationError({"medical_record_id": ["Unknown medical record for this tenant."]})

        return Response(PrescriptionSerializer(rx).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Prescriptions"], responses={200: PrescriptionSerializer})
    def retrieve(self, request, pk=None):
        ctx = self._ctx(request)

        try:
            rx = get_prescription(tenant_id=ctx.tenant_id, prescription_id=_rx_uuid_or_404(pk))
        except Prescription.DoesNotExist:
            raise NotFound("Prescription not found.")

        AuditLogger(ctx).view(RESOURCE_TYPE, rx.id)
        return Response(PrescriptionSerializer(rx).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Prescriptions"], request=PrescriptionUpdateSerializer, responses={200: PrescriptionSerializer})
    def partial_update(self, request, pk=None):
        ctx = self._ctx(request)
        prescription_id = _rx_uuid_or_404(pk)

        ser = PrescriptionUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        try:
            rx = PrescriptionService.update_prescription(ctx=ctx, prescription_id=prescription_id, data=ser.validated_data)
        except Prescription.DoesNotExist:
            raise NotFound("Prescription not found.")
        except PrescriptionClosed as e:
            raise ConflictError(str(e))

        return Response(PrescriptionSerializer(rx).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Prescriptions"], responses={204: None})
    def destroy(self, request, pk=None):
        ctx = self._ctx(request)

        try:
            PrescriptionService.delete_prescription(ctx=ctx, prescription_id=_rx_uuid_or_404(pk))
        except Prescription.DoesNotExist:
            raise NotFound("Prescription not found.")

        return Response(status=status.HTTP_204_NO_CONTENT)
