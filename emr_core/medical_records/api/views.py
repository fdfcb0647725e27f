# emr_core/medical_records/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.common.api.pagination import DefaultPagination, paginate
from emr_core.common.permissions import MedicalRecordPermission
from emr_core.common.scope import require_tenant_id
from emr_core.medical_records.api.serializers import (
    MedicalRecordCreateSerializer,
    MedicalRecordSerializer,
    MedicalRecordUpdateSerializer,
)
from emr_core.medical_records.models import MedicalRecord
from emr_core.medical_records.selectors import get_medical_record, medical_records_qs
from emr_core.medical_records.services import RESOURCE_TYPE, MedicalRecordService
from emr_core.patients.models import Patient


def _record_uuid_or_404(pk) -> UUID:
    try:
        return UUID(str(pk))
    except ValueError:
        raise NotFound("Medical record not found.")


class MedicalRecordViewSet(viewsets.ViewSet):
    permission_classes = [MedicalRecordPermission]

    serializer_class = MedicalRecordSerializer
    queryset = MedicalRecord.objects.none()

    def _ctx(self, request) -> AuditContext:
        return AuditContext.from_request(request, tenant_id=require_tenant_id(request))

    @extend_schema(
        tags=["Medical records"],
        responses={200: MedicalRecordSerializer(many=True)},
        parameters=[OpenApiParameter("patient_id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False)],
    )
    def list(self, request):
        ctx = self._ctx(request)

        patient_id = None
        patient_raw = request.query_params.get("patient_id")
        if patient_raw:
            try:
                patient_id = UUID(str(patient_raw))
            except ValueError:
                raise ValidationError({"patient_id": ["Invalid patient_id (UUID expected)."]})

        qs = medical_records_qs(tenant_id=ctx.tenant_id, patient_id=patient_id)
        response = paginate(request, qs, MedicalRecordSerializer, paginator=DefaultPagination())

        AuditLogger(ctx).view(RESOURCE_TYPE, detail={"patient_id": patient_id})
        return response

    @extend_schema(tags=["Medical records"], request=MedicalRecordCreateSerializer, responses={201: MedicalRecordSerializer})
    def create(self, request):
        ctx = self._ctx(request)

        ser = MedicalRecordCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            record = MedicalRecordService.create_record(ctx=ctx, **ser.validated_data)
        except Patient.DoesNotExist:
            raise ValidationError({"patient_id": ["Unknown patient for this tenant."]})

        return Response(MedicalRecordSerializer(record).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Medical records"], responses={200: MedicalRecordSerializer})
    def retrieve(self, request, pk=None):
        ctx = self._ctx(request)

        try:
            record = get_medical_record(tenant_id=ctx.tenant_id, record_id=_record_uuid_or_404(pk))
        except MedicalRecord.DoesNotExist:
            raise NotFound("Medical record not found.")

        AuditLogger(ctx).view(RESOURCE_TYPE, record.id)
        return Response(MedicalRecordSerializer(record).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Medical records"], request=MedicalRecordUpdateSerializer, responses={200: MedicalRecordSerializer})
    def partial_update(self, request, pk=None):
        ctx = self._ctx(request)
        record_id = _record_uuid_or_404(pk)

        ser = MedicalRecordUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        try:
            record = MedicalRecordService.update_record(ctx=ctx, record_id=record_id, data=ser.validated_data)
        except MedicalRecord.DoesNotExist:
            raise NotFound("Medical record not found.")

        return Response(MedicalRecordSerializer(record).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Medical records"], responses={204: None})
    def destroy(self, request, pk=None):
        ctx = self._ctx(request)

        try:
            MedicalRecordService.delete_record(ctx=ctx, record_id=_record_uuid_or_404(pk))
        except MedicalRecord.DoesNotExist:
            raise NotFound("Medical record not found.")

        return Response(status=status.HTTP_204_NO_CONTENT)
