"""Error taxonomy and the standard API error envelope.

Every domain exception raised by a Service Layer derives from one of the
four categories below.  Views translate the category (not the concrete
class) into an HTTP status, and every error body shares one shape::

    {"type": "client_error", "errors": [{"code": "...", "detail": "...", "attr": null}]}

Messages are written for API consumers: no table names, SQL or driver
errors ever reach them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------


class DomainError(Exception):
    """Base class for business-rule violations surfaced to API callers."""

    code = "domain_error"
    default_message = "The request could not be processed."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class RequestValidationError(DomainError):
    """Malformed request: the caller's fault, detected before any mutation."""

    code = "invalid"
    default_message = "The request is invalid."


class NotFoundError(DomainError):
    """A referenced product, order, customer or vendor does not exist."""

    code = "not_found"
    default_message = "The requested resource was not found."


class ConflictError(DomainError):
    """The request conflicts with current state (stock, lifecycle, ownership)."""

    code = "conflict"
    default_message = "The request conflicts with the current state."


class DownstreamError(DomainError):
    """Storage or notification failure outside the caller's control."""

    code = "unavailable"
    default_message = "A downstream service is unavailable."


HTTP_STATUS_BY_CATEGORY = (
    (RequestValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (DownstreamError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def http_status_for(exc: DomainError) -> int:
    for category, http_status in HTTP_STATUS_BY_CATEGORY:
        if isinstance(exc, category):
            return http_status
    return status.HTTP_400_BAD_REQUEST


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


def _error_type(http_status: int) -> str:
    if http_status == status.HTTP_400_BAD_REQUEST:
        return "validation_error"
    if http_status >= 500:
        return "server_error"
    return "client_error"


def error_body(
    http_status: int, errors: List[Dict[str, Any]]
) -> Dict[str, Any]:
    return {"type": _error_type(http_status), "errors": errors}


def domain_error_response(exc: DomainError) -> Response:
    """Render a domain exception with the standard envelope."""
    http_status = http_status_for(exc)
    body = error_body(
        http_status,
        [{"code": exc.code, "detail": exc.message, "attr": None}],
    )
    return Response(body, status=http_status)


def _flatten_validation(detail: Any, prefix: Optional[str] = None) -> List[Dict[str, Any]]:
    """Flatten DRF's nested validation detail into ``attr``-keyed entries."""
    errors: List[Dict[str, Any]] = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            attr = key if prefix is None else f"{prefix}.{key}"
            if key == "non_field_errors":
                attr = prefix
            errors.extend(_flatten_validation(value, attr))
    elif isinstance(detail, list):
        if all(not isinstance(item, (dict, list)) for item in detail):
            for item in detail:
                errors.append(
                    {
                        "code": getattr(item, "code", "invalid"),
                        "detail": str(item),
                        "attr": prefix,
                    }
                )
        else:
            for index, item in enumerate(detail):
                attr = str(index) if prefix is None else f"{prefix}.{index}"
                errors.extend(_flatten_validation(item, attr))
    else:
        errors.append(
            {
                "code": getattr(detail, "code", "invalid"),
                "detail": str(detail),
                "attr": prefix,
            }
        )
    return errors


def standard_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """DRF ``EXCEPTION_HANDLER`` producing the standard error envelope."""
    if isinstance(exc, DomainError):
        logger.info("api.domain_error", code=exc.code, detail=exc.message)
        return domain_error_response(exc)

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, DRFValidationError):
        errors = _flatten_validation(exc.detail)
    else:
        detail = response.data.get("detail", response.data) if isinstance(response.data, dict) else response.data
        errors = [
            {
                "code": getattr(detail, "code", None) or getattr(exc, "default_code", "error"),
                "detail": str(detail),
                "attr": None,
            }
        ]

    response.data = error_body(response.status_code, errors)
    return response
