from rest_framework import serializers

from emr_core.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "tenant_id",
            "patient_id",
            "title",
            "message",
            "type",
            "reference_type",
            "reference_id",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields
