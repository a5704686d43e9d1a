"""
Groceree Backend - Unhandled Error Middleware
===============================================

What:  Turns an exception no handler claimed into the JSON 500 body.
How:   Added first, so it is the innermost middleware: the 500 it builds
       still passes through CORS, access logging and the request ID
       middleware on its way out. GrocereeError and HTTPException never get
       here; FastAPI's exception handlers render them closer to the route.
"""

import logging
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from groceree.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again or contact support."


def error_body(
    error: str,
    message: str,
    request_id: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """The uniform error payload: {error, message, details?, request_id}."""
    body: Dict[str, Any] = {"error": error, "message": message, "request_id": request_id}
    if details:
        body["details"] = details
    return body


def request_id_for(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def unexpected_error_response(request: Request, exc: Exception) -> JSONResponse:
    rid = request_id_for(request)
    logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=error_body("internal_server_error", UNEXPECTED_ERROR_MESSAGE, rid),
    )


class UnhandledErrorMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return unexpected_error_response(request, exc)
