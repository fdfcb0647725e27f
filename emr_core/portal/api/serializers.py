# emr_core/portal/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from emr_core.portal.models import PatientMessage, PatientPreferences, SenderType


class MessageCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    sender_type = serializers.ChoiceField(choices=SenderType.choices)
    subject = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    message = serializers.CharField()
    parent_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get("parent_id") and not attrs.get("subject"):
            raise serializers.ValidationError({"subject": ["A subject is required for a new thread."]})
        return attrs


class PatientMessageSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    parent_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = PatientMessage
        fields = [
            "id",
            "tenant_id",
            "patient_id",
            "sender_type",
            "sender_user_id",
            "subject",
            "message",
            "parent_id",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields


class PatientMessageThreadSerializer(PatientMessageSerializer):
    replies = serializers.SerializerMethodField()

    class Meta(PatientMessageSerializer.Meta):
        fields = PatientMessageSerializer.Meta.fields + ["replies"]
        read_only_fields = fields

    def get_replies(self, obj) -> list:
        return PatientMessageSerializer(obj.replies.order_by("created_at", "id"), many=True).data


class NotificationChannelsSerializer(serializers.Serializer):
    email = serializers.BooleanField(required=False)
    sms = serializers.BooleanField(required=False)
    push = serializers.BooleanField(required=False)


class PreferencesUpdateSerializer(serializers.Serializer):
    notification_preferences = NotificationChannelsSerializer(required=False)
    portal_theme = serializers.ChoiceField(choices=["light", "dark", "system"], required=False)
    language_preference = serializers.CharField(max_length=16, required=False)
    time_zone = serializers.CharField(max_length=64, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class PatientPreferencesSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = PatientPreferences
        fields = [
            "patient_id",
            "notification_preferences",
            "portal_theme",
            "language_preference",
            "time_zone",
            "updated_at",
        ]
        read_only_fields = fields
