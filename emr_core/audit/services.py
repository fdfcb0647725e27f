# emr_core/audit/services.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from django.db import transaction

from emr_core.audit.config import AuditSettings
from emr_core.audit.diff import FieldChange, changes_to_detail, compute_changes
from emr_core.audit.models import AuditAction, AuditEvent
from emr_core.common.side_effects import run_best_effort

logger = logging.getLogger(__name__)

# Actions that always target one concrete resource.
RESOURCE_ID_REQUIRED = {AuditAction.CREATE, AuditAction.UPDATE, AuditAction.DELETE}


class AuditWriteError(ValueError):
    """Rejected audit write (bad action, missing resource id, malformed detail)."""


def _client_ip(meta: Mapping[str, Any]) -> Optional[str]:
    forwarded = (meta.get("HTTP_X_FORWARDED_FOR") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return meta.get("HTTP_X_REAL_IP") or meta.get("REMOTE_ADDR") or None


@dataclass(frozen=True)
class AuditContext:
    """Who did it, from where, and inside which tenant."""
    tenant_id: UUID | None
    actor_user_id: int | None
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request, *, tenant_id: UUID | None = None, user=None) -> "AuditContext":
        user = user if user is not None else getattr(request, "user", None)
        actor_user_id = user.id if user is not None and getattr(user, "is_authenticated", False) else None

        meta = getattr(request, "META", None) or {}
        return cls(
            tenant_id=tenant_id if tenant_id is not None else getattr(request, "tenant_id", None),
            actor_user_id=actor_user_id,
            ip_address=_client_ip(meta),
            user_agent=meta.get("HTTP_USER_AGENT") or None,
        )

    @classmethod
    def system(cls, *, tenant_id: UUID | None = None) -> "AuditContext":
        return cls(tenant_id=tenant_id, actor_user_id=None)


class AuditService:
    """
    Central audit writer.
    Persists one immutable AuditEvent per call; raises AuditWriteError on bad input.
    """

    @staticmethod
    @transaction.atomic
    def record(
        *,
        ctx: AuditContext,
        action: str,
        resource_type: str,
        resource_id: str | None = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        if action not in AuditAction.values:
            raise AuditWriteError(f"Unknown audit action: {action!r}")
        if not resource_type:
            raise AuditWriteError("resource_type is required.")
        if action in RESOURCE_ID_REQUIRED and not resource_id:
            raise AuditWriteError(f"resource_id is required for {action} events.")

        detail = dict(detail or {})
        if action == AuditAction.UPDATE and not isinstance(detail.get("changes"), Mapping):
            raise AuditWriteError("update events require a 'changes' mapping.")

        event = AuditEvent.objects.create(
            tenant_id=ctx.tenant_id,
            actor_user_id=ctx.actor_user_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=detail,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
        )

        logger.debug(
            "audit.recorded action=%s resource=%s/%s event_id=%s",
            action,
            resource_type,
            resource_id,
            event.id,
        )
        return event


class AuditLogger:
    """
    Fire-and-forget facade for services.

    Call it after the primary write has committed. Every method returns None;
    a failed write is logged and never reaches the caller.
    """

    def __init__(self, ctx: AuditContext, config: AuditSettings | None = None):
        self.ctx = ctx
        self.config = config or AuditSettings.from_settings()

    def _record(self, action: str, resource_type: str, resource_id=None, detail=None) -> None:
        run_best_effort(
            f"audit.{action}:{resource_type}",
            AuditService.record,
            ctx=self.ctx,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            detail=detail,
        )

    def create(self, resource_type: str, resource_id, detail: Optional[Dict[str, Any]] = None) -> None:
        self._record(AuditAction.CREATE, resource_type, resource_id, detail)

    def update(
        self,
        resource_type: str,
        resource_id,
        changes: Mapping[str, FieldChange],
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # No-op edits leave no trace.
        if not changes:
            return
        detail = dict(extra or {})
        detail["changes"] = changes_to_detail(changes)
        self._record(AuditAction.UPDATE, resource_type, resource_id, detail)

    def update_from(
        self,
        resource_type: str,
        resource_id,
        before: Mapping[str, Any],
        after: Mapping[str, Any],
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        changes = compute_changes(before, after, ignored=self.config.ignored_fields)
        self.update(resource_type, resource_id, changes, extra)

    def delete(self, resource_type: str, resource_id, detail: Optional[Dict[str, Any]] = None) -> None:
        self._record(AuditAction.DELETE, resource_type, resource_id, detail)

    def view(self, resource_type: str, resource_id=None, detail: Optional[Dict[str, Any]] = None) -> None:
        if not self.config.log_views:
            return
        self._record(AuditAction.VIEW, resource_type, resource_id, detail)

    def login(self, detail: Optional[Dict[str, Any]] = None) -> None:
        self._record(AuditAction.LOGIN, "auth", self.ctx.actor_user_id, detail)

    def logout(self, detail: Optional[Dict[str, Any]] = None) -> None:
        self._record(AuditAction.LOGOUT, "auth", self.ctx.actor_user_id, detail)
