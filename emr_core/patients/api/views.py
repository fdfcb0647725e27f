# emr_core/patients/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from emr_core.audit.services import AuditContext, AuditLogger
from emr_core.common.api.pagination import DefaultPagination, paginate
from emr_core.common.permissions import PatientPermission
from emr_core.common.scope import require_tenant_id
from emr_core.patients.api.serializers import PatientCreateSerializer, PatientSerializer, PatientUpdateSerializer
from emr_core.patients.models import Patient
from emr_core.patients.selectors import get_patient, search_patients
from emr_core.patients.services import RESOURCE_TYPE, PatientService


def _patient_uuid_or_404(pk) -> UUID:
    try:
        return UUID(str(pk))
    except ValueError:
        raise NotFound("Patient not found.")


class PatientViewSet(viewsets.ViewSet):
    permission_classes = [PatientPermission]

    # these two lines keep spectacular + path param typing happy
    serializer_class = PatientSerializer
    queryset = Patient.objects.none()

    def _ctx(self, request) -> AuditContext:
        return AuditContext.from_request(request, tenant_id=require_tenant_id(request))

    @extend_schema(
        tags=["Patients"],
        responses={200: PatientSerializer(many=True)},
        parameters=[OpenApiParameter("q", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                                     description="Search by name, phone or e-mail.")],
    )
    def list(self, request):
        ctx = self._ctx(request)

        q = request.query_params.get("q", "").strip()
        qs = search_patients(tenant_id=ctx.tenant_id, q=q)
        response = paginate(request, qs, PatientSerializer, paginator=DefaultPagination())

        AuditLogger(ctx).view(RESOURCE_TYPE, detail={"q": q} if q else None)
        return response

    @extend_schema(tags=["Patients"], request=PatientCreateSerializer, responses={201: PatientSerializer})
    def create(self, request):
        ctx = self._ctx(request)

        ser = PatientCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        patient = PatientService.create_patient(ctx=ctx, **ser.validated_data)
        return Response(PatientSerializer(patient).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        ctx = self._ctx(request)
        patient_id = _patient_uuid_or_404(pk)

        try:
            patient = get_patient(tenant_id=ctx.tenant_id, patient_id=patient_id)
        except Patient.DoesNotExist:
            raise NotFound("Patient not found.")

        AuditLogger(ctx).view(RESOURCE_TYPE, patient.id)
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], request=PatientUpdateSerializer, responses={200: PatientSerializer})
    def partial_update(self, request, pk=None):
        ctx = self._ctx(request)
        patient_id = _patient_uuid_or_404(pk)

        ser = PatientUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        try:
            patient = PatientService.update_patient(ctx=ctx, patient_id=patient_id, data=ser.validated_data)
        except Patient.DoesNotExist:
            raise NotFound("Patient not found.")

        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], responses={204: None})
    def destroy(self, request, pk=None):
        ctx = self._ctx(request)
        patient_id = _patient_uuid_or_404(pk)

        try:
            PatientService.delete_patient(ctx=ctx, patient_id=patient_id)
        except Patient.DoesNotExist:
            raise NotFound("Patient not found.")

        return Response(status=status.HTTP_204_NO_CONTENT)
