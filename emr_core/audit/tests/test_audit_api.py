# emr_core/audit/tests/test_audit_api.py
import pytest
from rest_framework.test import APIClient

from emr_core.audit.models import AuditAction, AuditEvent
from emr_core.patients.services import PatientService
from emr_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db


def test_list_requires_scope_header(api_client):
    r = api_client.get("/api/v1/audit/events/")
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "validation_error"


def test_list_is_admin_only(nurse, tenant):
    c = APIClient()
    c.force_authenticate(user=nurse)

    r = c.get("/api/v1/audit/events/", **scoped(tenant))
    assert r.status_code == 403, r.data
    assert r.data["error"]["code"] == "permission_denied"


def test_list_paginates_and_filters(api_client, tenant, audit_ctx):
    patient = PatientService.create_patient(ctx=audit_ctx, first_name="Ann", last_name="Lee")
    PatientService.update_patient(ctx=audit_ctx, patient_id=patient.id, data={"last_name": "Li"})
    for i in range(3):
        AuditEvent.objects.create(tenant_id=tenant.id, action=AuditAction.VIEW, resource_type="lab_results")

    r = api_client.get("/api/v1/audit/events/", {"page_size": 2}, **scoped(tenant))
    assert r.status_code == 200, r.data
    assert r.data["count"] == 5
    assert len(r.data["results"]) == 2
    assert r.data["next"] is not None

    r = api_client.get(
        "/api/v1/audit/events/",
        {"resource_type": "patients", "resource_id": str(patient.id)},
        **scoped(tenant),
    )
    assert r.status_code == 200, r.data
    assert [e["action"] for e in r.data["results"]] == ["update", "create"]


def test_list_rejects_unknown_action(api_client, tenant):
    r = api_client.get("/api/v1/audit/events/", {"action": "custom"}, **scoped(tenant))
    assert r.status_code == 400, r.data
    assert "action" in r.data["error"]["details"]


def test_list_hides_other_tenants(api_client, tenant, other_tenant):
    AuditEvent.objects.create(tenant_id=other_tenant.id, action=AuditAction.VIEW, resource_type="patients")

    r = api_client.get("/api/v1/audit/events/", **scoped(tenant))
    assert r.status_code == 200, r.data
    assert r.data["count"] == 0


def test_retrieve_includes_resource_name_and_changes(api_client, tenant, audit_ctx):
    patient = PatientService.create_patient(ctx=audit_ctx, first_name="Ann", last_name="Lee")
    PatientService.update_patient(ctx=audit_ctx, patient_id=patient.id, data={"phone_number": "5550199"})
    event = AuditEvent.objects.get(action=AuditAction.UPDATE)

    r = api_client.get(f"/api/v1/audit/events/{event.id}/", **scoped(tenant))
    assert r.status_code == 200, r.data
    assert r.data["resource_name"] == "Ann Lee"
    assert r.data["changes"] == {"phone_number": {"before": "", "after": "5550199"}}
    assert r.data["actor_username"] == "testuser"


def test_retrieve_other_tenant_is_404(api_client, tenant, other_tenant):
    event = AuditEvent.objects.create(tenant_id=other_tenant.id, action=AuditAction.VIEW, resource_type="patients")

    r = api_client.get(f"/api/v1/audit/events/{event.id}/", **scoped(tenant))
    assert r.status_code == 404, r.data
    assert r.data["error"]["code"] == "not_found"


def test_retrieve_non_numeric_id_is_404(api_client, tenant):
    r = api_client.get("/api/v1/audit/events/abc/", **scoped(tenant))
    assert r.status_code == 404


def _bulk_views(tenant, n):
    for _ in range(n):
        AuditEvent.objects.create(tenant_id=tenant.id, action=AuditAction.VIEW, resource_type="patients")


def test_list_page_sizes_follow_audit_settings(api_client, tenant, settings):
    settings.EMR_AUDIT = {"DEFAULT_PAGE_SIZE": 2, "MAX_PAGE_SIZE": 3}
    _bulk_views(tenant, 10)

    r = api_client.get("/api/v1/audit/events/", **scoped(tenant))
    assert r.status_code == 200, r.data
    assert r.data["count"] == 10
    assert len(r.data["results"]) == 2
    assert r.data["previous"] is None
    assert "page=2" in r.data["next"]

    r = api_client.get("/api/v1/audit/events/", {"page_size": 50}, **scoped(tenant))
    assert len(r.data["results"]) == 3


def test_list_last_page_has_no_next(api_client, tenant, settings):
    settings.EMR_AUDIT = {"DEFAULT_PAGE_SIZE": 4}
    _bulk_views(tenant, 10)

    r = api_client.get("/api/v1/audit/events/", {"page": 3}, **scoped(tenant))
    assert r.status_code == 200, r.data
    assert len(r.data["results"]) == 2
    assert r.data["next"] is None
    assert "page=2" in r.data["previous"]


@pytest.mark.parametrize("params", [{"page": 0}, {"page_size": 0}, {"page": "x"}, {"page_size": -5}])
def test_list_rejects_non_positive_paging(api_client, tenant, params):
    r = api_client.get("/api/v1/audit/events/", params, **scoped(tenant))
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "validation_error"
    assert set(r.data["error"]["details"]) == set(params)
