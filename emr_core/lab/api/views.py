# emr_core/lab/api/views.py
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
from emr_core.common.permissions import LabPermission
from emr_core.common.scope import require_tenant_id
from emr_core.lab.api.serializers import LabResultCreateSerializer, LabResultSerializer, LabResultUpdateSerializer
from emr_core.lab.models import LabResult, LabStatus
from emr_core.lab.selectors import get_lab_result, lab_results_qs
from emr_core.lab.services import RESOURCE_TYPE, LabResultService
from emr_core.lab.workflow import InvalidStatusTransition
from emr_core.patients.models import Patient


def _uuid_or_404(pk) -> UUID:
    try:
        return UUID(str(pk))
    except ValueError:
        raise NotFound("Lab result not found.")


class LabResultViewSet(viewsets.ViewSet):
    permission_classes = [LabPermission]

    serializer_class = LabResultSerializer
    queryset = LabResult.objects.none()

    def _ctx(self, request) -> AuditContext:
        return AuditContext.from_request(request, tenant_id=require_tenant_id(request))

    @extend_schema(
        tags=["Lab"],
        responses={200: LabResultSerializer(many=True)},
        parameters=[
            OpenApiParameter("patient_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("status", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="ordered | in_progress | completed | cancelled"),
        ],
    )
    def list(self, request):
        ctx = self._ctx(request)

        patient_raw = request.query_params.get("patient_id") or None
        status_q = request.query_params.get("status") or None

        patient_id = None
        if patient_raw:
            try:
                patient_id = UUID(str(patient_raw))
            except ValueError:
                raise ValidationError({"patient_id": ["Invalid patient_id (UUID expected)."]})
        if status_q and status_q not in LabStatus.values:
            raise ValidationError({"status": [f"Unknown status: {status_q}"]})

        qs = lab_results_qs(tenant_id=ctx.tenant_id, patient_id=patient_id, status=status_q)
        response = paginate(request, qs, LabResultSerializer, paginator=DefaultPagination())

        AuditLogger(ctx).view(RESOURCE_TYPE, detail={"patient_id": patient_id, "status": status_q})
        return response

    @extend_schema(tags=["Lab"], request=LabResultCreateSerializer, responses={201: LabResultSerializer})
    def create(self, request):
        ctx = self._ctx(request)

        ser = LabResultCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            lab_result = LabResultService.create_lab_result(ctx=ctx, **ser.validated_data)
        except Patient.DoesNotExist:
            raise ValidationError({"patient_id": ["Unknown patient for this tenant."]})

        return Response(LabResultSerializer(lab_result).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Lab"], responses={200: LabResultSerializer})
    def retrieve(self, request, pk=None):
        ctx = self._ctx(request)

        try:
            lab_result = get_lab_result(tenant_id=ctx.tenant_id, lab_result_id=_uuid_or_404(pk))
        except LabResult.DoesNotExist:
            raise NotFound("Lab result not found.")

        AuditLogger(ctx).view(RESOURCE_TYPE, lab_result.id)
        return Response(LabResultSerializer(lab_result).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab"], request=LabResultUpdateSerializer, responses={200: LabResultSerializer})
    def partial_update(self, request, pk=None):
        ctx = self._ctx(request)
        lab_result_id = _uuid_or_404(pk)

        ser = LabResultUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        try:
            lab_result = LabResultService.update_lab_result(ctx=ctx, lab_result_id=lab_result_id, data=ser.validated_data)
        except LabResult.DoesNotExist:
            raise NotFound("Lab result not found.")
        except InvalidStatusTransition as e:
            raise ConflictError(str(e))

        return Response(LabResultSerializer(lab_result).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab"], responses={204: None})
    def destroy(self, request, pk=None):
        ctx = self._ctx(request)

        try:
            LabResultService.delete_lab_result(ctx=ctx, lab_result_id=_uuid_or_404(pk))
        except LabResult.DoesNotExist:
            raise NotFound("Lab result not found.")

        return Response(status=status.HTTP_204_NO_CONTENT)
