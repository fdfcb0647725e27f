# emr_core/iam/tests/test_auth.py
import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from emr_core.audit.models import AuditAction, AuditEvent
from emr_core.iam.models import TenantMembership
from emr_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db


def _login_payload(user, password="testpass"):
    username_field = user.USERNAME_FIELD
    return {username_field: getattr(user, username_field), "password": password}


def test_login_sets_cookies_and_audits(user, tenant, settings):
    """
    Fresh client: login must not depend on an already-authenticated session.
    """
    c = APIClient()
    res = c.post("/api/v1/auth/login/", _login_payload(user), format="json", **scoped(tenant))
    assert res.status_code == 200, res.data

    assert settings.SIMPLE_JWT["AUTH_COOKIE"] in res.cookies
    assert settings.SIMPLE_JWT["AUTH_COOKIE_REFRESH"] in res.cookies

    event = AuditEvent.objects.get(action=AuditAction.LOGIN)
    assert event.resource_type == "auth"
    assert event.actor_user_id == user.id
    assert event.tenant_id == tenant.id


def test_login_with_foreign_tenant_header_is_unscoped(user, other_tenant):
    c = APIClient()
    res = c.post("/api/v1/auth/login/", _login_payload(user), format="json", **scoped(other_tenant))
    assert res.status_code == 200, res.data

    assert AuditEvent.objects.get(action=AuditAction.LOGIN).tenant_id is None


def test_login_bad_password_is_401(user):
    c = APIClient()
    res = c.post("/api/v1/auth/login/", _login_payload(user, "wrong"), format="json")
    assert res.status_code == 401
    assert res.data["error"]["code"] == "authentication_failed"
    assert not AuditEvent.objects.exists()


def test_refresh_from_cookie(user, settings):
    c = APIClient()
    c.post("/api/v1/auth/login/", _login_payload(user), format="json")

    res = c.post("/api/v1/auth/refresh/")
    assert res.status_code == 200, res.data
    assert settings.SIMPLE_JWT["AUTH_COOKIE"] in res.cookies


def test_logout_clears_cookies_and_audits(api_client, user, settings):
    res = api_client.post("/api/v1/auth/logout/")
    assert res.status_code == 200, res.data

    assert res.cookies[settings.SIMPLE_JWT["AUTH_COOKIE"]].value == ""
    event = AuditEvent.objects.get(action=AuditAction.LOGOUT)
    assert event.actor_user_id == user.id


def test_logout_requires_auth():
    res = APIClient().post("/api/v1/auth/logout/")
    assert res.status_code in (401, 403)


def test_jwt_scope_header_blocks_non_member(user, other_tenant):
    """
    Real JWT (no force_authenticate) so the authentication class enforces scope.
    """
    c = APIClient()
    access = str(RefreshToken.for_user(user).access_token)
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    res = c.get("/api/v1/patients/", **scoped(other_tenant))
    assert res.status_code == 403, res.data
    assert res.data["error"]["code"] == "permission_denied"


def test_jwt_scope_header_allows_member(user, tenant):
    c = APIClient()
    access = str(RefreshToken.for_user(user).access_token)
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    res = c.get("/api/v1/patients/", **scoped(tenant))
    assert res.status_code == 200, res.data


def test_inactive_membership_loses_access(user, tenant):
    TenantMembership.objects.filter(user=user, tenant=tenant).update(is_active=False)

    c = APIClient()
    c.cookies["emr_access"] = str(RefreshToken.for_user(user).access_token)

    res = c.get("/api/v1/patients/", **scoped(tenant))
    assert res.status_code == 403, res.data


def test_malformed_scope_header_is_400(user):
    c = APIClient()
    access = str(RefreshToken.for_user(user).access_token)
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    res = c.get("/api/v1/patients/", HTTP_X_TENANT_ID="not-a-uuid")
    assert res.status_code == 400, res.data
    assert res.data["error"]["code"] == "validation_error"
