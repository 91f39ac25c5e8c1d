"""Error taxonomy and the JSON error envelope.

Every failure leaves the API as ``{"success": false, "error": <message>}``.
A machine-checkable ``reason`` is added when the error carries one, and
internal exception detail is only exposed outside production.
"""
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from logging_config import get_logger

logger = get_logger(__name__)


class ApiError(HTTPException):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, reason: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.reason = reason
        self.internal_detail = detail
        super().__init__(status_code=self.status_code, detail=self.message)

    def __repr__(self):
        return f"{type(self).__name__}(reason={self.reason!r}, message={self.message!r})"


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid input"


class BadRequest(ApiError):
    status_code = 400
    default_message = "Bad request"


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Authentication failed"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Access denied"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class Internal(ApiError):
    status_code = 500
    default_message = "Something went wrong!"


def error_body(message: str, reason: Optional[str] = None, detail: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message}
    if reason:
        body["reason"] = reason
    if detail and not config.IS_PRODUCTION:
        body["message"] = detail
    return body


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.reason, exc.internal_detail),
        headers=getattr(exc, "headers", None),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc, ApiError):
        return await api_error_handler(request, exc)
    if exc.status_code == 404 and exc.detail == "Not Found":
        content = error_body("Route not found")
        content.update({"path": request.url.path, "method": request.method})
        return JSONResponse(status_code=404, content=content)
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)), headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid input"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(status_code=400, content=error_body(message, "invalid_input"))


async def store_error_handler(request: Request, exc: PyMongoError):
    logger.error("store_failure", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content=error_body(Internal.default_message, detail=str(exc)))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=error_body(Internal.default_message, detail=str(exc)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PyMongoError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
