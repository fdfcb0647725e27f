# emr_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from emr_core.iam.models import TenantMembership


@admin.register(TenantMembership)
class TenantMembershipAdmin(admin.ModelAdmin):
    list_display = ("tenant", "user", "role", "is_active", "created_at")
    list_filter = ("tenant", "role", "is_active")
    search_fields = ("user__username", "user__email", "tenant__code")
