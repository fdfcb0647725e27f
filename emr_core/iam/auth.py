# emr_core/iam/auth.py
from __future__ import annotations

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication

from emr_core.iam.scope import apply_scope_from_headers


class CookieOrHeaderJWTAuthentication(JWTAuthentication):
    """
    Access token from `Authorization: Bearer ...`, else from the HttpOnly
    access cookie. Once the user is known the X-Tenant-Id header is checked
    against their memberships.
    """

    def _raw_token(self, request):
        header = self.get_header(request)
        if header is not None:
            return self.get_raw_token(header)
        return request.COOKIES.get(settings.SIMPLE_JWT.get("AUTH_COOKIE", "emr_access")) or None

    def authenticate(self, request):
        raw_token = self._raw_token(request)
        if raw_token is None:
            return None

        token = self.get_validated_token(raw_token)
        user = self.get_user(token)
        apply_scope_from_headers(request, user=user)
        return user, token
