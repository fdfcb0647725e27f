# emr_core/audit/config.py
from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings


@dataclass(frozen=True)
class AuditSettings:
    """
    Immutable view of settings.EMR_AUDIT.
    Services take one explicitly; from_settings() is the default source.
    """
    log_views: bool = True
    ignored_fields: tuple[str, ...] = ("id", "created_at", "updated_at")
    default_page_size: int = 20
    max_page_size: int = 200
    unknown_resource_label: str = "Unknown"

    @classmethod
    def from_settings(cls) -> "AuditSettings":
        raw = getattr(settings, "EMR_AUDIT", None) or {}
        defaults = cls()
        return cls(
            log_views=bool(raw.get("LOG_VIEWS", defaults.log_views)),
            ignored_fields=tuple(raw.get("IGNORED_FIELDS", defaults.ignored_fields)),
            default_page_size=int(raw.get("DEFAULT_PAGE_SIZE", defaults.default_page_size)),
            max_page_size=int(raw.get("MAX_PAGE_SIZE", defaults.max_page_size)),
            unknown_resource_label=str(raw.get("UNKNOWN_RESOURCE_LABEL", defaults.unknown_resource_label)),
        )
