# emr_core/common/api/exceptions.py
"""
Single error shape for the whole API:

    {"error": {"code": ..., "message": ..., "details": ..., "request_id": ...}}

`api_exception_handler` is wired as REST_FRAMEWORK["EXCEPTION_HANDLER"]; the
scope middleware builds the same body with `error_envelope`.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Request failed."

# First match wins; APIException subclasses not listed use their default_code.
_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (exceptions.ValidationError, "validation_error"),
    (exceptions.NotAuthenticated, "not_authenticated"),
    (exceptions.AuthenticationFailed, "authentication_failed"),
    (exceptions.PermissionDenied, "permission_denied"),
    (exceptions.NotFound, "not_found"),
    (Http404, "not_found"),
)


class ConflictError(exceptions.APIException):
    """A business rule blocks the action, e.g. leaving a terminal lab status."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"


def request_id_for(request) -> str:
    if request is None:
        return uuid.uuid4().hex
    rid = getattr(request, "request_id", None)
    if not rid:
        rid = uuid.uuid4().hex
        request.request_id = rid
    return rid


def error_envelope(code: str, message: str, *, details: Any = None, request=None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": request_id_for(request),
        }
    }


def error_code(exc: Exception) -> str:
    for exc_type, code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    if isinstance(exc, exceptions.APIException):
        return exc.default_code or "api_error"
    return "error"


def _split_detail(data: Any) -> tuple[str, Any]:
    # {"detail": "x"} -> ("x", None); {"detail": "x", "k": v} -> ("x", {"k": v});
    # anything else (field errors, lists) becomes the details payload.
    if isinstance(data, dict) and "detail" in data:
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(data["detail"]), rest or None
    return GENERIC_MESSAGE, data


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled API error request_id=%s", request_id_for(request), exc_info=exc)
        return Response(
            error_envelope("server_error", "Unexpected server error.", request=request),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    message, details = _split_detail(response.data)
    return Response(
        error_envelope(error_code(exc), message, details=details, request=request),
        status=response.status_code,
        headers=response.headers,
    )
