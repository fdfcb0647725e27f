# emr_core/audit/diff.py
"""
Field-level change-sets between two versions of the same entity.

Both sides are plain mappings (field name -> JSON-like value). The caller is
responsible for passing two versions of the same entity.
"""
from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder


class _Absent:
    """Marker for a field missing on one side (distinct from an explicit None)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


@dataclass(frozen=True)
class FieldChange:
    before: Any
    after: Any

    def as_dict(self) -> dict[str, Any]:
        # An absent side is omitted: {"after": 1} means "did not exist before".
        out: dict[str, Any] = {}
        if self.before is not ABSENT:
            out["before"] = self.before
        if self.after is not ABSENT:
            out["after"] = self.after
        return out


def values_equal(a: Any, b: Any) -> bool:
    """
    Deep value equality. Booleans only equal booleans (True != 1).
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if isinstance(a, Mapping) or isinstance(b, Mapping):
        if not (isinstance(a, Mapping) and isinstance(b, Mapping)):
            return False
        if set(a.keys()) != set(b.keys()):
            return False
        return all(values_equal(a[k], b[k]) for k in a)

    if isinstance(a, (list, tuple)) or isinstance(b, (list, tuple)):
        if not (isinstance(a, (list, tuple)) and isinstance(b, (list, tuple))):
            return False
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))

    return a == b


def compute_changes(
    before: Mapping[str, Any] | None,
    after: Mapping[str, Any] | None,
    *,
    ignored: Iterable[str] = (),
) -> dict[str, FieldChange]:
    before = before or {}
    after = after or {}
    skip = set(ignored)

    keys = list(before.keys()) + [k for k in after.keys() if k not in before]

    changes: dict[str, FieldChange] = {}
    for key in keys:
        if key in skip:
            continue
        old = before.get(key, ABSENT) if key in before else ABSENT
        new = after.get(key, ABSENT) if key in after else ABSENT

        if old is ABSENT or new is ABSENT:
            changes[key] = FieldChange(before=old, after=new)
        elif not values_equal(old, new):
            changes[key] = FieldChange(before=old, after=new)

    return changes


def changes_to_detail(changes: Mapping[str, FieldChange]) -> dict[str, dict[str, Any]]:
    return {field: change.as_dict() for field, change in changes.items()}


def snapshot(instance, fields: Iterable[str] | None = None) -> dict[str, Any]:
    """
    JSON-normalised mapping of a model instance's concrete fields.
    Foreign keys are keyed by attname (e.g. "patient_id").
    """
    wanted = set(fields) if fields is not None else None

    data: dict[str, Any] = {}
    for field in instance._meta.concrete_fields:
        if wanted is not None and field.name not in wanted and field.attname not in wanted:
            continue
        data[field.attname] = field.value_from_object(instance)

    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))
