"""Access logging middleware.

Each HTTP request gets a correlation ID (echoed in ``X-Request-ID``) and
one log line when it finishes, carrying status and duration.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .request_id import bound_request_id, resolve_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        route = f"{request.method} {request.url.path}"

        with bound_request_id(request_id):
            started = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    f"{route} raised",
                    extra={"duration_ms": _elapsed_ms(started)},
                )
                raise

            logger.info(
                f"{route} -> {response.status_code}",
                extra={
                    "status_code": response.status_code,
                    "duration_ms": _elapsed_ms(started),
                },
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
