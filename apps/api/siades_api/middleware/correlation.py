"""Request ID middleware: tag each request and log its outcome."""

import logging
import re
import time
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"

# Forwarded ids that do not match are replaced with a generated one
VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def resolve_request_id(header_value: Optional[str]) -> str:
    """Use the forwarded request ID when well formed, otherwise generate one."""
    if header_value and VALID_REQUEST_ID.fullmatch(header_value):
        return header_value
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID, echo it back and log the completed request."""

    async def dispatch(self, request: Request, call_next):
        """Process request with request ID."""
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        started = time.perf_counter()
        response: Response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers[REQUEST_ID_HEADER] = request_id

        actor = getattr(request.state, "actor", None)
        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "actor_id": actor.id if actor else None,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
