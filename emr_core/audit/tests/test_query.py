# emr_core/audit/tests/test_query.py
import logging
from datetime import timedelta

import pytest
from django.utils import timezone

from emr_core.audit import resource_names
from emr_core.audit.config import AuditSettings
from emr_core.audit.models import AuditAction, AuditEvent
from emr_core.audit.resource_names import resolve_resource_name
from emr_core.audit.selectors import AuditFilter, filter_audit_events, get_audit_event, list_audit_events
from emr_core.lab.models import LabResult

pytestmark = pytest.mark.django_db


def _event(tenant_id, **kwargs):
    defaults = {
        "action": AuditAction.CREATE,
        "resource_type": "patients",
        "resource_id": "p-1",
        "details": {},
    }
    defaults.update(kwargs)
    return AuditEvent.objects.create(tenant_id=tenant_id, **defaults)


def test_pages_cover_every_event_exactly_once(tenant):
    created = [_event(tenant.id, resource_id=f"p-{i}") for i in range(25)]

    seen = []
    for page in (1, 2, 3):
        result = list_audit_events(AuditFilter(tenant_id=tenant.id), page=page, page_size=10)
        assert result.total_count == 25
        assert result.page == page
        assert result.page_size == 10
        seen.extend(e.id for e in result.events)

    assert len(seen) == 25
    assert sorted(seen) == sorted(e.id for e in created)
    # newest first: same-timestamp ties fall back to insertion order
    assert seen == sorted(seen, reverse=True)


def test_page_past_the_end_is_empty(tenant):
    _event(tenant.id)
    result = list_audit_events(AuditFilter(tenant_id=tenant.id), page=5, page_size=10)
    assert result.events == []
    assert result.total_count == 1


@pytest.mark.parametrize("page,page_size", [(0, 10), (-1, 10), (1, 0), (1, -5)])
def test_invalid_paging_raises(page, page_size):
    with pytest.raises(ValueError):
        list_audit_events(AuditFilter(), page=page, page_size=page_size)


def test_page_size_is_clamped_and_defaulted(tenant):
    cfg = AuditSettings(default_page_size=7, max_page_size=50)

    assert list_audit_events(AuditFilter(), page_size=1000, config=cfg).page_size == 50
    assert list_audit_events(AuditFilter(), config=cfg).page_size == 7


def test_filters_combine(tenant, other_tenant, user):
    match = _event(tenant.id, action=AuditAction.UPDATE, resource_id="p-9", actor_user=user,
                   details={"changes": {"x": {"after": 1}}})
    _event(tenant.id, action=AuditAction.CREATE, resource_id="p-9", actor_user=user)
    _event(tenant.id, action=AuditAction.UPDATE, resource_id="p-8", actor_user=user,
           details={"changes": {"x": {"after": 1}}})
    _event(other_tenant.id, action=AuditAction.UPDATE, resource_id="p-9", actor_user=user,
           details={"changes": {"x": {"after": 1}}})
    _event(tenant.id, action=AuditAction.UPDATE, resource_type="lab_results", resource_id="p-9",
           details={"changes": {"x": {"after": 1}}})

    qs = filter_audit_events(
        AuditFilter(
            tenant_id=tenant.id,
            resource_type="patients",
            resource_id="p-9",
            action=AuditAction.UPDATE,
            actor_user_id=user.id,
        )
    )

    assert [e.id for e in qs] == [match.id]


def test_created_range_is_inclusive(tenant):
    event = _event(tenant.id)
    now = timezone.now()

    hit = filter_audit_events(AuditFilter(created_from=event.created_at, created_to=event.created_at))
    miss = filter_audit_events(AuditFilter(created_from=now + timedelta(minutes=1)))

    assert list(hit) == [event]
    assert list(miss) == []


def test_get_audit_event_respects_tenant(tenant, other_tenant):
    event = _event(tenant.id)

    assert get_audit_event(event_id=event.id, tenant_id=tenant.id) == event
    assert get_audit_event(event_id=event.id, tenant_id=other_tenant.id) is None
    assert get_audit_event(event_id=event.id + 1000) is None


def test_resource_name_for_existing_patient(patient):
    assert resolve_resource_name("patients", str(patient.id)) == "Test Patient"


def test_resource_name_for_deleted_patient(patient):
    pid = str(patient.id)
    patient.delete()
    assert resolve_resource_name("patients", pid) == "Unknown Patient"


def test_resource_name_for_malformed_id():
    assert resolve_resource_name("patients", "not-a-uuid") == "Unknown Patient"


def test_resource_name_is_tenant_scoped(patient, other_tenant):
    assert resolve_resource_name("patients", str(patient.id), tenant_id=other_tenant.id) == "Unknown Patient"


def test_resource_name_for_lab_result(patient, tenant):
    lr = LabResult.objects.create(tenant_id=tenant.id, patient=patient, test_name="CBC")
    assert resolve_resource_name("lab_results", str(lr.id)) == "CBC for Test Patient"


def test_resource_name_for_unregistered_type():
    assert resolve_resource_name("widgets", "1234567890abcdef") == "widgets #12345678"


def test_resource_name_swallows_resolver_errors(monkeypatch, caplog):
    def exploding(resource_id, tenant_id):
        raise RuntimeError("lookup failed")

    monkeypatch.setitem(
        resource_names._registry,
        "gadgets",
        resource_names._Registration(label="Gadget", resolver=exploding),
    )

    with caplog.at_level(logging.ERROR, logger="emr_core.audit.resource_names"):
        name = resolve_resource_name("gadgets", "g-1")

    assert name == "Unknown Gadget"
    assert "Resource name lookup failed" in caplog.text


def test_domain_resolvers_are_registered():
    assert {"patients", "lab_results", "patient_messages"} <= set(resource_names.registered_resource_types())
