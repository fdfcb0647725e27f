# emr_core/prescriptions/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from emr_core.prescriptions.models import Prescription, PrescriptionStatus


class PrescriptionCreateSerializer(serializers.Serializer):
    medical_record_id = serializers.UUIDField()
    medication_name = serializers.CharField(max_length=255)
    dosage = serializers.CharField(max_length=64)
    frequency = serializers.CharField(max_length=64)
    duration = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    instructions = serializers.CharField(required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(choices=PrescriptionStatus.choices, required=False, default=PrescriptionStatus.ACTIVE)


class PrescriptionUpdateSerializer(serializers.Serializer):
    medication_name = serializers.CharField(max_length=255, required=False)
    dosage = serializers.CharField(max_length=64, required=False)
    frequency = serializers.CharField(max_length=64, required=False)
    duration = serializers.CharField(max_length=64, required=False, allow_blank=True)
    instructions = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=PrescriptionStatus.choices, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class PrescriptionSerializer(serializers.ModelSerializer):
    medical_record_id = serializers.UUIDField(read_only=True)
    patient_id = serializers.UUIDField(source="medical_record.patient_id", read_only=True)
    patient_name = serializers.CharField(source="medical_record.patient.full_name", read_only=True)
    prescribed_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Prescription
        fields = [
            "id",
            "tenant_id",
            "medical_record_id",
            "patient_id",
            "patient_name",
            "prescribed_by_id",
            "medication_name",
            "dosage",
            "frequency",
            "duration",
            "instructions",
            "status",
            "prescribed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
