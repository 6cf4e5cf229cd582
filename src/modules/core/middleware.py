"""Request correlation for structured logs."""

import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

REQUEST_ID_HEADER = "X-Request-ID"

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)


class CorrelationIdMiddleware:
    """Bind an ``X-Request-ID`` to every log line emitted while serving a request.

    The inbound header is reused when present, otherwise a UUID4 is minted.
    The same value is echoed back on the response.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        token = correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)
        log = logger.bind(method=request.method, path=request.get_full_path())

        log.info("request_started")
        try:
            response = self.get_response(request)
        finally:
            correlation_id_var.reset(token)

        log.info("request_finished", status_code=response.status_code)
        response[REQUEST_ID_HEADER] = cid
        return response
