from __future__ import annotations

import logging
from typing import Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dashlight.errors import DashlightError, GeometryError, InferenceError, RemoteError
from dashlight.middleware.request_id import REQUEST_ID_HEADER

logger = logging.getLogger(__name__)

# (exception type, HTTP status, error code); first match wins
_DOMAIN_ERRORS: Tuple[Tuple[type, int, str], ...] = (
    (GeometryError, 422, "degenerate_crop"),
    (InferenceError, 502, "inference_failed"),
    (RemoteError, 502, "remote_failed"),
)


def _request_id_of(request: Request) -> Optional[str]:
    # set by RequestIdMiddleware; the inbound header covers handlers that run outside it
    return getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER)


def error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    """Every non-2xx body has the shape {"error": {"code", "message", "request_id"}}."""
    rid = _request_id_of(request)
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "request_id": rid}},
        headers={REQUEST_ID_HEADER: rid} if rid else None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Routes raise HTTPException(detail={"code": ..., "message": ...});
    the framework itself raises plain-string details (404, 405).
    """
    detail = exc.detail
    if isinstance(detail, dict):
        return error_response(
            request,
            exc.status_code,
            str(detail.get("code", "http_error")),
            str(detail.get("message", "Request failed")),
        )
    return error_response(request, exc.status_code, "http_error", str(detail or "Request failed"))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        what = err.get("msg", "Invalid value")
        problems.append(f"{where}: {what}" if where else str(what))

    return error_response(request, 422, "validation_error", "; ".join(problems) or "Validation error")


async def dashlight_exception_handler(request: Request, exc: DashlightError) -> JSONResponse:
    """
    Pipeline errors that reach the API layer unrecovered.
    /classify recovers from these itself; /crop surfaces GeometryError here.
    """
    for exc_type, status_code, code in _DOMAIN_ERRORS:
        if isinstance(exc, exc_type):
            logger.info("domain_error code=%s message=%s", code, exc)
            return error_response(request, status_code, code, str(exc))

    logger.warning("domain_error code=dashlight_error message=%s", exc)
    return error_response(request, 500, "dashlight_error", str(exc))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error path=%s", request.url.path)
    return error_response(request, 500, "internal_error", "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(DashlightError, dashlight_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
