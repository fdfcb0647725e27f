# emr_core/patients/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from emr_core.patients.models import Patient


class PatientCreateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=120)
    last_name = serializers.CharField(max_length=120)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    blood_type = serializers.CharField(max_length=8, required=False, allow_blank=True, default="")
    address = serializers.CharField(required=False, allow_blank=True, default="")
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    emergency_contact_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    emergency_contact_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    insurance_provider = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    insurance_policy_number = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")


class PatientUpdateSerializer(serializers.Serializer):
    """
    Partial update contract (PATCH).
    """
    first_name = serializers.CharField(max_length=120, required=False)
    last_name = serializers.CharField(max_length=120, required=False)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.CharField(max_length=32, required=False, allow_blank=True)
    blood_type = serializers.CharField(max_length=8, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    emergency_contact_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    emergency_contact_phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    insurance_provider = serializers.CharField(max_length=255, required=False, allow_blank=True)
    insurance_policy_number = serializers.CharField(max_length=128, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class PatientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Patient
        fields = [
            "id",
            "tenant_id",
            "first_name",
            "last_name",
            "date_of_birth",
            "gender",
            "blood_type",
            "address",
            "phone_number",
            "email",
            "emergency_contact_name",
            "emergency_contact_phone",
            "insurance_provider",
            "insurance_policy_number",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
