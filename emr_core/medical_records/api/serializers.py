# emr_core/medical_records/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from emr_core.medical_records.models import MedicalRecord


class MedicalRecordCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    chief_complaint = serializers.CharField(max_length=255)
    visit_date = serializers.DateField(required=False)
    diagnosis = serializers.CharField(required=False, allow_blank=True, default="")
    treatment_plan = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    follow_up_date = serializers.DateField(required=False, allow_null=True)


class MedicalRecordUpdateSerializer(serializers.Serializer):
    chief_complaint = serializers.CharField(max_length=255, required=False)
    visit_date = serializers.DateField(required=False)
    diagnosis = serializers.CharField(required=False, allow_blank=True)
    treatment_plan = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    follow_up_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class MedicalRecordSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)
    doctor_user_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = MedicalRecord
        fields = [
            "id",
            "tenant_id",
            "patient_id",
            "patient_name",
            "doctor_user_id",
            "visit_date",
            "chief_complaint",
            "diagnosis",
            "treatment_plan",
            "notes",
            "follow_up_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
