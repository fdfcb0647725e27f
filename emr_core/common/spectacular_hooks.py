# emr_core/common/spectacular_hooks.py
from __future__ import annotations


def preprocess_exclude_legacy_api(endpoints):
    """Keep /api/v1/ only; the unversioned /api/ alias would duplicate every operation."""
    return [
        endpoint
        for endpoint in endpoints
        if endpoint[0].startswith("/api/v1/") or not endpoint[0].startswith("/api/")
    ]
