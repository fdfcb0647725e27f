# emr_core/lab/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from emr_core.lab.models import LabResult, LabStatus


class LabResultCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    test_name = serializers.CharField(max_length=255)
    test_date = serializers.DateField(required=False)
    result_date = serializers.DateField(required=False, allow_null=True)
    result = serializers.CharField(required=False, allow_blank=True, default="")
    unit = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    is_abnormal = serializers.BooleanField(required=False, default=False)
    status = serializers.ChoiceField(choices=LabStatus.choices, required=False, default=LabStatus.ORDERED)


class LabResultUpdateSerializer(serializers.Serializer):
    test_name = serializers.CharField(max_length=255, required=False)
    test_date = serializers.DateField(required=False)
    result_date = serializers.DateField(required=False, allow_null=True)
    result = serializers.CharField(required=False, allow_blank=True)
    unit = serializers.CharField(max_length=32, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    is_abnormal = serializers.BooleanField(required=False)
    status = serializers.ChoiceField(choices=LabStatus.choices, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class LabResultSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)

    class Meta:
        model = LabResult
        fields = [
            "id",
            "tenant_id",
            "patient_id",
            "patient_name",
            "test_name",
            "test_date",
            "result_date",
            "result",
            "unit",
            "notes",
            "is_abnormal",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
