# conftest.py
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from emr_core.audit.services import AuditContext
from emr_core.iam.models import RoleCode, TenantMembership
from emr_core.patients.models import Patient
from emr_core.tenants.models import Tenant


@pytest.fixture
def tenant(db):
    return Tenant.objects.create(code="test-tenant", name="Test Tenant")


@pytest.fixture
def other_tenant(db):
    return Tenant.objects.create(code="other-tenant", name="Other Tenant")


@pytest.fixture
def user(db, tenant):
    """
    Test user with the ADMIN group and an ADMIN membership in `tenant`.
    """
    User = get_user_model()
    user = User.objects.create_user(
        username="testuser",
        password="testpass",
        is_active=True,
    )

    admin_group, _ = Group.objects.get_or_create(name="ADMIN")
    user.groups.add(admin_group)

    TenantMembership.objects.create(tenant=tenant, user=user, role=RoleCode.ADMIN, is_active=True)
    return user


@pytest.fixture
def nurse(db, tenant):
    """Member of `tenant` with the NURSE role only (no groups)."""
    User = get_user_model()
    nurse = User.objects.create_user(username="nurse", password="testpass", is_active=True)
    TenantMembership.objects.create(tenant=tenant, user=nurse, role=RoleCode.NURSE, is_active=True)
    return nurse


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def audit_ctx(tenant, user):
    return AuditContext(tenant_id=tenant.id, actor_user_id=user.id, ip_address="10.0.0.1", user_agent="pytest")


@pytest.fixture
def patient(db, tenant):
    return Patient.objects.create(
        tenant_id=tenant.id,
        first_name="Test",
        last_name="Patient",
        phone_number="5550100",
    )
