# common/exceptions.py
import logging

from django.db import IntegrityError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.settings import api_settings
from rest_framework.views import exception_handler, set_rollback

log = logging.getLogger(__name__)


class ConflictError(APIException):
    """
    Write would break a uniqueness rule (duplicate plot number, plot already
    booked, stale invoice version, ...).
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


def flatten_errors(detail, prefix=""):
    """
    DRF error detail (nested dicts / lists) -> [{"field": "a.b.0", "message": "..."}]
    """
    out = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            if key == api_settings.NON_FIELD_ERRORS_KEY:
                path = prefix or key
            else:
                path = f"{prefix}.{key}" if prefix else str(key)
            out.extend(flatten_errors(value, path))
    elif isinstance(detail, (list, tuple)):
        for idx, item in enumerate(detail):
            if isinstance(item, (dict, list, tuple)):
                path = f"{prefix}.{idx}" if prefix else str(idx)
                out.extend(flatten_errors(item, path))
            else:
                out.append({"field": prefix or api_settings.NON_FIELD_ERRORS_KEY, "message": str(item)})
    else:
        out.append({"field": prefix or api_settings.NON_FIELD_ERRORS_KEY, "message": str(detail)})
    return out


def _error_code(exc, default):
    codes = exc.get_codes() if isinstance(exc, APIException) else None
    if isinstance(codes, str):
        return codes
    return default


def custom_exception_handler(exc, context):
    """
    Every error leaves the API as:
      {"message": "...", "code": "...", "errors": [{"field": ..., "message": ...}]}
    """
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, ValidationError):
            errors = flatten_errors(exc.detail)
            message = errors[0]["message"] if errors else "Invalid input."
            code = "validation_error"
        else:
            detail = response.data.get("detail") if isinstance(response.data, dict) else response.data
            message = str(detail) if detail is not None else "Request failed."
            errors = []
            code = _error_code(exc, "error")
        response.data = {"message": message, "code": code, "errors": errors}
        return response

    if isinstance(exc, (IntegrityError, ProtectedError)):
        log.warning("⚠️ Integrity conflict in %s: %s", context.get("view").__class__.__name__, exc)
        set_rollback()
        return Response(
            {
                "message": "The request conflicts with existing data.",
                "code": "conflict",
                "errors": [],
            },
            status=status.HTTP_409_CONFLICT,
        )

    # no internals to the client, full trace to the log
    log.exception("❌ Unhandled error in %s", context.get("view").__class__.__name__)
    set_rollback()
    return Response(
        {"message": "Internal Server Error", "code": "server_error", "errors": []},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
