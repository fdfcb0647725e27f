# tests/test_common_stack.py
import logging

import pytest
from rest_framework.exceptions import ValidationError

from emr_core.common.api.exceptions import ConflictError, api_exception_handler
from emr_core.common.logging import PIIRedactingFilter, redact_pii
from emr_core.common.side_effects import best_effort, run_best_effort


def test_unhandled_error_becomes_500_envelope():
    res = api_exception_handler(RuntimeError("boom"), {"request": None})

    assert res.status_code == 500
    err = res.data["error"]
    assert err["code"] == "server_error"
    assert err["message"] == "Unexpected server error."
    assert err["request_id"]


def test_validation_error_keeps_field_details():
    res = api_exception_handler(ValidationError({"page": ["must be >= 1"]}), {"request": None})

    assert res.status_code == 400
    assert res.data["error"]["code"] == "validation_error"
    assert res.data["error"]["details"] == {"page": ["must be >= 1"]}


def test_conflict_error_envelope():
    res = api_exception_handler(ConflictError("Cannot change lab result status."), {"request": None})

    assert res.status_code == 409
    assert res.data["error"] == {
        "code": "conflict",
        "message": "Cannot change lab result status.",
        "details": None,
        "request_id": res.data["error"]["request_id"],
    }


def test_redact_pii_masks_contact_data():
    text = redact_pii("patient jane.doe@example.com phone +1 (555) 010-9999 id 42")

    assert "jane.doe@example.com" not in text
    assert "555" not in text
    assert "[email]" in text and "[phone]" in text
    assert text.endswith("id 42")


def test_pii_filter_rewrites_args():
    record = logging.LogRecord("emr_core", logging.ERROR, __file__, 1, "failed for %s", ("a@b.io",), None)

    assert PIIRedactingFilter().filter(record) is True
    assert record.getMessage() == "failed for [email]"


@pytest.mark.django_db
def test_run_best_effort_swallows_and_logs(caplog):
    def boom():
        raise RuntimeError("nope")

    with caplog.at_level(logging.ERROR, logger="emr_core.common.side_effects"):
        assert run_best_effort("test.boom", boom) is None

    assert "test.boom" in caplog.text


@pytest.mark.django_db
def test_best_effort_decorator_passes_arguments():
    calls = []

    @best_effort("test.collect")
    def collect(x, *, y):
        calls.append((x, y))
        return "ignored"

    assert collect(1, y=2) is None
    assert calls == [(1, 2)]


@pytest.mark.django_db
def test_session_user_without_scope_header_gets_400(client, user):
    client.force_login(user)

    res = client.get("/api/v1/patients/")

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "validation_error"


@pytest.mark.django_db
def test_session_user_outside_tenant_gets_403(client, user, other_tenant):
    client.force_login(user)

    res = client.get("/api/v1/patients/", HTTP_X_TENANT_ID=str(other_tenant.id))

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "permission_denied"


@pytest.mark.django_db
def test_docs_and_auth_paths_skip_scope(client, user):
    client.force_login(user)

    assert client.get("/api/schema/").status_code == 200
    assert client.post("/api/v1/auth/logout/").status_code != 400


def test_redact_pii_keeps_ids_and_timestamps():
    line = "event_id=1234567890 created=2026-10-18 02:22:33 id=12345678-1234-5678-1234-567812345678"

    assert redact_pii(line) == line


@pytest.mark.parametrize("phone", ["555-010-9999", "(555) 010 9999", "+15550109999", "+44 555.010.9999"])
def test_redact_pii_masks_phone_shapes(phone):
    assert redact_pii(f"call {phone} now") == "call [phone] now"
