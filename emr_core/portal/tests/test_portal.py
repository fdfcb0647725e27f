# emr_core/portal/tests/test_portal.py
import pytest

from emr_core.audit.models import AuditAction, AuditEvent
from emr_core.notifications.models import Notification, NotificationType
from emr_core.portal.models import PatientMessage, PatientPreferences
from emr_core.portal.services import MessageService
from emr_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db


def _post(api_client, tenant, patient, **payload):
    body = {"patient_id": str(patient.id), "sender_type": "doctor", "subject": "Results", "message": "All normal."}
    body.update(payload)
    r = api_client.post("/api/v1/portal/messages/", body, format="json", **scoped(tenant))
    assert r.status_code == 201, r.data
    return r.data


def test_post_message_notifies_and_audits(api_client, tenant, patient):
    data = _post(api_client, tenant, patient)

    n = Notification.objects.get(reference_id=data["id"])
    assert n.type == NotificationType.MESSAGE
    assert n.message == "New message from doctor: Results"

    event = AuditEvent.objects.get(action=AuditAction.CREATE, resource_type="patient_messages")
    assert event.resource_id == data["id"]
    assert event.details["sender_type"] == "doctor"


def test_reply_drops_subject_and_joins_thread(api_client, tenant, patient):
    parent = _post(api_client, tenant, patient)
    reply = _post(api_client, tenant, patient, sender_type="patient", subject="ignored", parent_id=parent["id"])

    assert reply["subject"] == ""
    assert reply["parent_id"] == parent["id"]
    assert Notification.objects.get(reference_id=reply["id"]).message == "New message from patient: Reply to message"

    r = api_client.get(f"/api/v1/portal/messages/{parent['id']}/", **scoped(tenant))
    assert r.status_code == 200, r.data
    assert [m["id"] for m in r.data["replies"]] == [reply["id"]]

    r = api_client.get("/api/v1/portal/messages/", {"patient_id": str(patient.id)}, **scoped(tenant))
    assert r.data["count"] == 1


def test_new_thread_needs_subject(api_client, tenant, patient):
    r = api_client.post(
        "/api/v1/portal/messages/",
        {"patient_id": str(patient.id), "sender_type": "staff", "message": "hi"},
        format="json",
        **scoped(tenant),
    )
    assert r.status_code == 400, r.data


def test_mark_message_read_is_idempotent(audit_ctx, patient):
    msg = PatientMessage.objects.create(
        tenant_id=patient.tenant_id,
        patient=patient,
        sender_type="staff",
        subject="Hello",
        message="hi",
    )

    first = MessageService.mark_read(ctx=audit_ctx, message_id=msg.id)
    second = MessageService.mark_read(ctx=audit_ctx, message_id=msg.id)

    assert first.is_read and second.is_read
    assert second.read_at == first.read_at
    assert AuditEvent.objects.filter(action=AuditAction.UPDATE, resource_id=str(msg.id)).count() == 1


def test_mark_read_endpoint(api_client, tenant, patient):
    data = _post(api_client, tenant, patient)

    r1 = api_client.post(f"/api/v1/portal/messages/{data['id']}/mark-read/", **scoped(tenant))
    r2 = api_client.post(f"/api/v1/portal/messages/{data['id']}/mark-read/", **scoped(tenant))

    assert r1.status_code == 200 and r2.status_code == 200
    assert r1.data["read_at"] == r2.data["read_at"]


def test_preferences_default_on_first_read(api_client, tenant, patient):
    r = api_client.get(f"/api/v1/portal/patients/{patient.id}/preferences/", **scoped(tenant))

    assert r.status_code == 200, r.data
    assert r.data["notification_preferences"] == {"email": True, "sms": False, "push": False}
    assert r.data["portal_theme"] == "light"
    assert PatientPreferences.objects.filter(patient=patient).count() == 1


def test_preferences_update_records_nested_diff(api_client, tenant, patient):
    r = api_client.patch(
        f"/api/v1/portal/patients/{patient.id}/preferences/",
        {"notification_preferences": {"sms": True}, "time_zone": "Europe/Berlin"},
        format="json",
        **scoped(tenant),
    )
    assert r.status_code == 200, r.data
    assert r.data["notification_preferences"] == {"email": True, "sms": True, "push": False}

    event = AuditEvent.objects.get(action=AuditAction.UPDATE, resource_type="patient_preferences")
    assert event.resource_id == str(patient.id)
    assert event.details["changes"] == {
        "notification_preferences": {
            "before": {"email": True, "sms": False, "push": False},
            "after": {"email": True, "sms": True, "push": False},
        },
        "time_zone": {"before": "UTC", "after": "Europe/Berlin"},
    }


def test_preferences_unchanged_patch_writes_nothing(api_client, tenant, patient):
    r = api_client.patch(
        f"/api/v1/portal/patients/{patient.id}/preferences/",
        {"portal_theme": "light"},
        format="json",
        **scoped(tenant),
    )
    assert r.status_code == 200, r.data
    assert not AuditEvent.objects.filter(action=AuditAction.UPDATE).exists()
