# emr_core/common/permissions.py
from __future__ import annotations

from rest_framework.permissions import SAFE_METHODS, BasePermission

from emr_core.common.scope import peek_tenant_id

ADMIN, DOCTOR, NURSE, RECEPTION, LAB, BILLING, READONLY = (
    "ADMIN",
    "DOCTOR",
    "NURSE",
    "RECEPTION",
    "LAB",
    "BILLING",
    "READONLY",
)

EVERYONE = frozenset({ADMIN, DOCTOR, NURSE, RECEPTION, LAB, BILLING, READONLY})
CLINICIANS = frozenset({ADMIN, DOCTOR, NURSE})
FRONT_DESK = CLINICIANS | {RECEPTION}
NOBODY: frozenset[str] = frozenset()

_METHOD_ACTIONS = {
    "POST": "create",
    "PUT": "update",
    "PATCH": "partial_update",
    "DELETE": "destroy",
}


def request_roles(request) -> frozenset[str]:
    """
    Roles of the caller for the tenant named by the scope header.

    Superusers are ADMIN everywhere. Otherwise roles are the union of the
    user's Django group names and their active TenantMembership role in the
    requested tenant; a signed-in user with neither is READONLY.
    Cached on the request for the rest of the permission checks.
    """
    cached = getattr(request, "_emr_roles", None)
    if cached is not None:
        return cached

    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        roles: frozenset[str] = NOBODY
    elif user.is_superuser:
        roles = frozenset({ADMIN})
    else:
        found = set(user.groups.values_list("name", flat=True))
        tenant_id = peek_tenant_id(request)
        if tenant_id is not None:
            from emr_core.iam.services.membership import roles_for_user

            found |= roles_for_user(user_id=user.id, tenant_id=tenant_id)
        roles = frozenset(found or {READONLY})

    request._emr_roles = roles
    return roles


class BaseRolePermission(BasePermission):
    """
    Allow a request when the caller holds one of the roles listed for the
    view action. ADMIN is always allowed; an action with no entry is denied,
    except that safe methods fall back to the list/retrieve entry.
    """

    message = "You do not have permission to perform this action."
    rules: dict[str, frozenset[str]] = {
        "list": EVERYONE,
        "retrieve": EVERYONE,
    }

    @staticmethod
    def _is_detail(view) -> bool:
        kwargs = getattr(view, "kwargs", None) or {}
        return "pk" in kwargs or "id" in kwargs

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action
        if request.method in SAFE_METHODS:
            return "retrieve" if self._is_detail(view) else "list"
        return _METHOD_ACTIONS.get(request.method.upper())

    def allowed_roles(self, request, view) -> frozenset[str] | None:
        allowed = self.rules.get(self._infer_action(request, view))
        if allowed is None and request.method in SAFE_METHODS:
            allowed = self.rules.get("retrieve" if self._is_detail(view) else "list")
        return allowed

    def has_permission(self, request, view) -> bool:
        roles = request_roles(request)
        if not roles:
            return False
        if ADMIN in roles:
            return True
        allowed = self.allowed_roles(request, view)
        return bool(allowed and roles & allowed)

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class PatientPermission(BaseRolePermission):
    rules = {
        "list": EVERYONE,
        "retrieve": EVERYONE,
        "create": FRONT_DESK,
        "partial_update": CLINICIANS,
        "destroy": NOBODY,
    }


class LabPermission(BaseRolePermission):
    rules = {
        "list": CLINICIANS | {LAB, READONLY},
        "retrieve": CLINICIANS | {LAB, READONLY},
        "create": CLINICIANS | {LAB},
        "partial_update": frozenset({DOCTOR, LAB}),
        "destroy": NOBODY,
    }


class MedicalRecordPermission(BaseRolePermission):
    rules = {
        "list": CLINICIANS | {READONLY},
        "retrieve": CLINICIANS | {READONLY},
        "create": frozenset({DOCTOR}),
        "partial_update": frozenset({DOCTOR}),
        "destroy": NOBODY,
    }


class PrescriptionPermission(BaseRolePermission):
    """Only doctors write; other clinical roles read."""

    rules = {
        "list": CLINICIANS | {READONLY},
        "retrieve": CLINICIANS | {READONLY},
        "create": frozenset({DOCTOR}),
        "partial_update": frozenset({DOCTOR}),
        "destroy": NOBODY,
    }


class NotificationPermission(BaseRolePermission):
    rules = {
        "list": EVERYONE,
        "retrieve": EVERYONE,
        "mark_read": EVERYONE - {READONLY},
    }


class PortalPermission(BaseRolePermission):
    """Patient messages; preferences use the subclass below."""

    rules = {
        "list": EVERYONE,
        "retrieve": EVERYONE,
        "create": FRONT_DESK,
        "mark_read": FRONT_DESK,
        "preferences": FRONT_DESK,
    }


class PortalPreferencesPermission(PortalPermission):
    def _infer_action(self, request, view) -> str | None:
        return "preferences"


class AuditPermission(BaseRolePermission):
    """The audit log is readable by ADMIN only."""

    rules = {}
