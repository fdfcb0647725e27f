# emr_core/common/middleware.py
from __future__ import annotations

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from emr_core.common.api.exceptions import error_envelope
from emr_core.common.scope import parse_uuid
from emr_core.iam.scope import INVALID_SCOPE_MSG, MISSING_SCOPE_MSG, Scope


def _is_scoped_path(path: str) -> bool:
    if not path.startswith("/api/") or path in ("/api/", "/api/v1/"):
        return False
    if path.startswith(("/api/docs/", "/api/schema/")):
        return False
    return not path.endswith(("/auth/login/", "/auth/refresh/", "/auth/logout/"))


class TenantScopeMiddleware(MiddlewareMixin):
    """
    Tenant scope for API calls made with a Django session user.

    Missing or malformed X-Tenant-Id -> 400, caller not an active member of
    the tenant -> 403, otherwise request.scope / request.tenant_id are set.
    Anonymous and JWT requests pass through untouched; the DRF
    authentication class applies the same checks once it knows the user.
    """

    HEADER_KEYS = ("HTTP_X_TENANT_ID", "HTTP_X_EMR_TENANT_ID")

    def process_request(self, request):
        request.scope = None
        request.tenant_id = None

        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated and _is_scoped_path(request.path):
            return self._apply_scope(request, user)
        return None

    def _apply_scope(self, request, user) -> JsonResponse | None:
        raw = next((request.META[k] for k in self.HEADER_KEYS if request.META.get(k)), None)
        if not raw:
            return self._reject(request, 400, "validation_error", MISSING_SCOPE_MSG)

        tenant_id = parse_uuid(raw)
        if tenant_id is None:
            return self._reject(request, 400, "validation_error", INVALID_SCOPE_MSG)

        from emr_core.iam.services.membership import is_user_member_of_tenant

        if not is_user_member_of_tenant(user_id=user.id, tenant_id=tenant_id):
            return self._reject(request, 403, "permission_denied", "You do not have access to the selected tenant.")

        request.scope = Scope(tenant_id=tenant_id)
        request.tenant_id = tenant_id
        return None

    @staticmethod
    def _reject(request, status_code: int, code: str, message: str) -> JsonResponse:
        return JsonResponse(error_envelope(code, message, request=request), status=status_code)
