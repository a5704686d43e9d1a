"""
Groceree Backend - Access Log Middleware
==========================================

What:  One log line per HTTP request on the `groceree.access` logger.
How:   Times the request with perf_counter and picks the level from the
       status class: 5xx ERROR, 4xx WARNING, everything else INFO.

Line format:
    GET /api/recipes 200 12.3ms [a1b2c3d4] from 127.0.0.1

Request bodies, upload contents and the Authorization header are never
logged. `/health` and image downloads are skipped: probes and <img> tags
would drown out the API traffic.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from groceree.middleware.request_id import request_id_var

logger = logging.getLogger("groceree.access")

QUIET_PATH_PREFIXES = ("/health", "/images/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path.startswith(QUIET_PATH_PREFIXES):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
