# emr_core/lab/tests/test_lab_results.py
import pytest

from emr_core.audit.models import AuditAction, AuditEvent
from emr_core.lab.models import LabStatus
from emr_core.lab.workflow import InvalidStatusTransition, assert_transition
from emr_core.notifications.models import Notification
from emr_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize(
    "current,new",
    [
        ("ordered", "in_progress"),
        ("ordered", "completed"),
        ("ordered", "cancelled"),
        ("in_progress", "completed"),
        ("in_progress", "cancelled"),
        ("completed", "completed"),
        ("cancelled", "cancelled"),
    ],
)
def test_allowed_transitions(current, new):
    assert_transition(current, new)


@pytest.mark.parametrize(
    "current,new",
    [
        ("completed", "in_progress"),
        ("completed", "ordered"),
        ("cancelled", "completed"),
        ("in_progress", "ordered"),
    ],
)
def test_rejected_transitions(current, new):
    with pytest.raises(InvalidStatusTransition):
        assert_transition(current, new)


def _create(api_client, tenant, patient, **payload):
    body = {"patient_id": str(patient.id), "test_name": "CBC"}
    body.update(payload)
    r = api_client.post("/api/v1/lab/results/", body, format="json", **scoped(tenant))
    assert r.status_code == 201, r.data
    return r.data


def test_create_and_complete_flow(api_client, tenant, patient):
    data = _create(api_client, tenant, patient)
    assert data["status"] == "ordered"
    assert data["patient_name"] == "Test Patient"

    r = api_client.patch(
        f"/api/v1/lab/results/{data['id']}/",
        {"status": "completed", "result": "13.5", "unit": "g/dL"},
        format="json",
        **scoped(tenant),
    )
    assert r.status_code == 200, r.data
    assert r.data["status"] == "completed"
    assert r.data["result_date"] is not None

    event = AuditEvent.objects.get(action=AuditAction.UPDATE, resource_id=data["id"])
    changes = event.details["changes"]
    assert changes["status"] == {"before": "ordered", "after": "completed"}
    assert changes["result"] == {"before": "", "after": "13.5"}
    assert changes["result_date"]["before"] is None

    assert Notification.objects.filter(reference_id=data["id"]).count() == 1


def test_leaving_terminal_status_is_conflict(api_client, tenant, patient):
    data = _create(api_client, tenant, patient, status="completed")

    r = api_client.patch(
        f"/api/v1/lab/results/{data['id']}/",
        {"status": "in_progress"},
        format="json",
        **scoped(tenant),
    )
    assert r.status_code == 409, r.data
    assert r.data["error"]["code"] == "conflict"
    assert not AuditEvent.objects.filter(action=AuditAction.UPDATE).exists()


def test_create_for_unknown_patient_is_400(api_client, tenant, other_tenant):
    from emr_core.patients.models import Patient

    stranger = Patient.objects.create(tenant_id=other_tenant.id, first_name="X", last_name="Y")
    r = api_client.post(
        "/api/v1/lab/results/",
        {"patient_id": str(stranger.id), "test_name": "CBC"},
        format="json",
        **scoped(tenant),
    )
    assert r.status_code == 400, r.data
    assert "patient_id" in r.data["error"]["details"]


def test_list_filters_and_logs_view(api_client, tenant, patient):
    _create(api_client, tenant, patient, test_name="CBC")
    _create(api_client, tenant, patient, test_name="TSH", status="completed")

    r = api_client.get("/api/v1/lab/results/", {"status": "completed"}, **scoped(tenant))
    assert r.status_code == 200, r.data
    assert [x["test_name"] for x in r.data["results"]] == ["TSH"]

    assert AuditEvent.objects.filter(action=AuditAction.VIEW, resource_type="lab_results").count() == 1

    r = api_client.get("/api/v1/lab/results/", {"status": "done"}, **scoped(tenant))
    assert r.status_code == 400


def test_delete_writes_delete_event(api_client, tenant, patient):
    data = _create(api_client, tenant, patient)

    r = api_client.delete(f"/api/v1/lab/results/{data['id']}/", **scoped(tenant))
    assert r.status_code == 204

    event = AuditEvent.objects.get(action=AuditAction.DELETE, resource_id=data["id"])
    assert event.details["snapshot"]["test_name"] == "CBC"


def test_lab_role_cannot_delete(tenant, patient):
    from django.contrib.auth import get_user_model
    from rest_framework.test import APIClient

    from emr_core.iam.models import RoleCode, TenantMembership

    tech = get_user_model().objects.create_user(username="tech", password="x")
    TenantMembership.objects.create(tenant=tenant, user=tech, role=RoleCode.LAB)

    c = APIClient()
    c.force_authenticate(user=tech)
    created = c.post(
        "/api/v1/lab/results/",
        {"patient_id": str(patient.id), "test_name": "CBC"},
        format="json",
        **scoped(tenant),
    )
    assert created.status_code == 201, created.data

    r = c.delete(f"/api/v1/lab/results/{created.data['id']}/", **scoped(tenant))
    assert r.status_code == 403
