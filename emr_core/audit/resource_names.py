# emr_core/audit/resource_names.py
"""
Human-readable names for audited resources.

Each domain app registers a resolver for its resource_type:

    @register_resource_name("patients", label="Patient")
    def _patient_name(resource_id, tenant_id):
        ...

A resolver returns None when the entity no longer exists.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID

from emr_core.audit.config import AuditSettings

logger = logging.getLogger(__name__)

Resolver = Callable[[str, Optional[UUID]], Optional[str]]


@dataclass(frozen=True)
class _Registration:
    label: str
    resolver: Resolver


_registry: dict[str, _Registration] = {}


def register_resource_name(resource_type: str, *, label: str):
    def _decorator(fn: Resolver) -> Resolver:
        _registry[resource_type] = _Registration(label=label, resolver=fn)
        return fn
    return _decorator


def registered_resource_types() -> list[str]:
    return sorted(_registry)


def resolve_resource_name(
    resource_type: str,
    resource_id: str | None,
    *,
    tenant_id: UUID | None = None,
    config: AuditSettings | None = None,
) -> str:
    """Never raises: missing or failing lookups degrade to a placeholder."""
    cfg = config or AuditSettings.from_settings()
    reg = _registry.get(resource_type)

    if reg is None:
        if not resource_id:
            return resource_type
        return f"{resource_type} #{str(resource_id)[:8]}"

    placeholder = f"{cfg.unknown_resource_label} {reg.label}"
    if not resource_id:
        return placeholder

    try:
        name = reg.resolver(str(resource_id), tenant_id)
    except Exception:
        logger.exception(
            "Resource name lookup failed resource_type=%s resource_id=%s",
            resource_type,
            resource_id,
        )
        return placeholder

    return name or placeholder
