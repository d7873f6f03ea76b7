import re
import time
import uuid
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
# Client-supplied IDs end up verbatim in every log line of the request.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _request_id(request: HttpRequest) -> str:
    supplied = request.META.get("HTTP_X_REQUEST_ID", "")
    if _VALID_REQUEST_ID.match(supplied):
        return supplied
    return str(uuid.uuid4())


class CorrelationIdMiddleware:
    """Tag every log line of a request with a correlation ID.

    The ID is taken from ``X-Request-ID`` when it looks sane, otherwise a
    fresh UUID4 is minted. It is bound into structlog's contextvars along
    with the method and path, so ledger and coordinator events logged
    deep inside a transaction can be traced back to the request, and it
    is echoed in the response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = _request_id(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=cid,
            method=request.method,
            path=request.path,
        )

        started = time.monotonic()
        logger.info("request_started")
        try:
            response = self.get_response(request)
        except Exception:
            logger.exception(
                "request_failed",
                duration_ms=round((time.monotonic() - started) * 1000, 2),
            )
            raise

        logger.info(
            "request_finished",
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        response[REQUEST_ID_HEADER] = cid
        return response
