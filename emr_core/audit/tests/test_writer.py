# emr_core/audit/tests/test_writer.py
import logging

import pytest
from django.test import RequestFactory

from emr_core.audit.config import AuditSettings
from emr_core.audit.diff import compute_changes
from emr_core.audit.models import AuditAction, AuditEvent, ImmutableAuditEventError
from emr_core.audit.services import AuditContext, AuditLogger, AuditService, AuditWriteError
from emr_core.patients.models import Patient
from emr_core.patients.services import PatientService

pytestmark = pytest.mark.django_db


def test_record_persists_context_and_detail(audit_ctx, user, tenant):
    event = AuditService.record(
        ctx=audit_ctx,
        action=AuditAction.CREATE,
        resource_type="patients",
        resource_id="abc",
        detail={"first_name": "Ann"},
    )

    event.refresh_from_db()
    assert event.tenant_id == tenant.id
    assert event.actor_user_id == user.id
    assert event.ip_address == "10.0.0.1"
    assert event.user_agent == "pytest"
    assert event.details == {"first_name": "Ann"}
    assert event.created_at is not None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"action": "custom", "resource_type": "patients", "resource_id": "1"},
        {"action": "create", "resource_type": "", "resource_id": "1"},
        {"action": "create", "resource_type": "patients", "resource_id": None},
        {"action": "delete", "resource_type": "patients", "resource_id": ""},
        {"action": "update", "resource_type": "patients", "resource_id": "1", "detail": {"status": "x"}},
    ],
)
def test_record_rejects_invalid_input(audit_ctx, kwargs):
    with pytest.raises(AuditWriteError):
        AuditService.record(ctx=audit_ctx, **kwargs)
    assert AuditEvent.objects.count() == 0


def test_view_and_login_do_not_need_resource_id(audit_ctx):
    AuditService.record(ctx=audit_ctx, action=AuditAction.VIEW, resource_type="patients")
    AuditService.record(ctx=audit_ctx, action=AuditAction.LOGIN, resource_type="auth")
    assert AuditEvent.objects.count() == 2


def test_written_event_cannot_be_modified_or_removed(audit_ctx):
    event = AuditService.record(ctx=audit_ctx, action=AuditAction.CREATE, resource_type="patients", resource_id="1")

    event.details = {"tampered": True}
    with pytest.raises(ImmutableAuditEventError):
        event.save()
    with pytest.raises(ImmutableAuditEventError):
        event.delete()
    with pytest.raises(ImmutableAuditEventError):
        AuditEvent.objects.filter(id=event.id).update(details={})
    with pytest.raises(ImmutableAuditEventError):
        AuditEvent.objects.filter(id=event.id).delete()

    assert AuditEvent.objects.get(id=event.id).details == {}


def test_reads_are_stable(audit_ctx):
    event = AuditService.record(
        ctx=audit_ctx,
        action=AuditAction.UPDATE,
        resource_type="patients",
        resource_id="1",
        detail={"changes": {"last_name": {"before": "Lee", "after": "Li"}}},
    )

    first = AuditEvent.objects.values().get(id=event.id)
    second = AuditEvent.objects.values().get(id=event.id)
    assert first == second


def test_logger_skips_empty_changeset(audit_ctx):
    AuditLogger(audit_ctx).update("patients", "1", {})
    AuditLogger(audit_ctx).update_from("patients", "1", {"a": 1, "updated_at": "x"}, {"a": 1, "updated_at": "y"})

    assert AuditEvent.objects.count() == 0


def test_logger_update_renders_changes(audit_ctx):
    changes = compute_changes({"status": "ordered"}, {"status": "completed", "unit": "mg"})
    AuditLogger(audit_ctx).update("lab_results", "42", changes, extra={"source": "api"})

    event = AuditEvent.objects.get()
    assert event.action == AuditAction.UPDATE
    assert event.details == {
        "source": "api",
        "changes": {
            "status": {"before": "ordered", "after": "completed"},
            "unit": {"after": "mg"},
        },
    }


def test_logger_view_respects_log_views(audit_ctx):
    AuditLogger(audit_ctx, AuditSettings(log_views=False)).view("patients", "1")
    assert AuditEvent.objects.count() == 0

    AuditLogger(audit_ctx, AuditSettings(log_views=True)).view("patients", "1")
    assert AuditEvent.objects.filter(action=AuditAction.VIEW).count() == 1


def test_logger_swallows_validation_errors(audit_ctx, caplog):
    with caplog.at_level(logging.ERROR, logger="emr_core.common.side_effects"):
        result = AuditLogger(audit_ctx).create("patients", None)

    assert result is None
    assert AuditEvent.objects.count() == 0
    assert "audit.create:patients" in caplog.text


def test_primary_write_survives_audit_failure(audit_ctx, monkeypatch):
    def boom(**kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(AuditService, "record", boom)

    patient = PatientService.create_patient(ctx=audit_ctx, first_name="Ann", last_name="Lee")

    assert Patient.objects.filter(id=patient.id).exists()
    assert AuditEvent.objects.count() == 0


def test_primary_write_survives_audit_failure_inside_outer_transaction(audit_ctx, monkeypatch):
    from django.db import transaction

    def boom(**kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(AuditService, "record", boom)

    with transaction.atomic():
        patient = PatientService.create_patient(ctx=audit_ctx, first_name="Ann", last_name="Lee")
        # the enclosing transaction is still usable
        assert Patient.objects.filter(id=patient.id).count() == 1


def test_context_from_request_reads_first_forwarded_hop(user, tenant):
    request = RequestFactory().get(
        "/api/v1/patients/",
        HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.2",
        HTTP_USER_AGENT="Mozilla/5.0",
        REMOTE_ADDR="10.0.0.9",
    )
    request.user = user

    ctx = AuditContext.from_request(request, tenant_id=tenant.id)

    assert ctx == AuditContext(
        tenant_id=tenant.id,
        actor_user_id=user.id,
        ip_address="203.0.113.7",
        user_agent="Mozilla/5.0",
    )


def test_context_from_request_falls_back_to_remote_addr():
    request = RequestFactory().get("/", REMOTE_ADDR="192.0.2.1")

    ctx = AuditContext.from_request(request)

    assert ctx.ip_address == "192.0.2.1"
    assert ctx.actor_user_id is None
    assert ctx.user_agent is None
