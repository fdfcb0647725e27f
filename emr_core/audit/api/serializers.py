# emr_core/audit/api/serializers.py
from rest_framework import serializers

from emr_core.audit.models import AuditEvent
from emr_core.audit.resource_names import resolve_resource_name


class AuditEventSerializer(serializers.ModelSerializer):
    # actor_user_id is the attribute Django exposes for the FK
    actor_user_id = serializers.IntegerField(read_only=True, allow_null=True)
    actor_username = serializers.SerializerMethodField()

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "tenant_id",
            "actor_user_id",
            "actor_username",
            "action",
            "resource_type",
            "resource_id",
            "details",
            "ip_address",
            "user_agent",
            "created_at",
        ]
        read_only_fields = fields

    def get_actor_username(self, obj) -> str | None:
        user = obj.actor_user
        return user.get_username() if user is not None else None


class AuditEventDetailSerializer(AuditEventSerializer):
    resource_name = serializers.SerializerMethodField()
    changes = serializers.SerializerMethodField()

    class Meta(AuditEventSerializer.Meta):
        fields = AuditEventSerializer.Meta.fields + ["resource_name", "changes"]
        read_only_fields = fields

    def get_resource_name(self, obj) -> str:
        return resolve_resource_name(obj.resource_type, obj.resource_id, tenant_id=obj.tenant_id)

    def get_changes(self, obj) -> dict | None:
        details = obj.details or {}
        changes = details.get("changes") if isinstance(details, dict) else None
        return changes if isinstance(changes, dict) else None
