"""
Error taxonomy shared by services and routes, and the handlers that turn
errors into the `{success, message, errors}` response envelope.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class InventoryError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(InventoryError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"
    reason = "unauthenticated"


class NoToken(Unauthenticated):
    default_message = "Access denied. No token provided."
    reason = "no_token"


class InvalidToken(Unauthenticated):
    default_message = "Invalid token."
    reason = "invalid_token"


class ExpiredToken(Unauthenticated):
    default_message = "Token expired."
    reason = "expired_token"


class UnknownSubject(Unauthenticated):
    default_message = "User not found."
    reason = "unknown_subject"


class DeactivatedAccount(Unauthenticated):
    default_message = "Account is deactivated."
    reason = "deactivated_account"


class InvalidCredentials(Unauthenticated):
    default_message = "Invalid email or password"
    reason = "invalid_credentials"


class Forbidden(InventoryError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied."


class SelfProtectionViolation(Forbidden):
    default_message = "You cannot modify your own account"


class NotFound(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(InventoryError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InvalidOperation(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid operation"


class ValidationError(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, errors: Optional[List[Dict[str, str]]] = None, message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors or []


class UpstreamFailure(InventoryError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable"


def validation_errors(raw_errors) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into `[{field, message}]`"""
    errors = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "request", "message": err.get("msg", "Invalid value")})
    return errors


def _envelope(status_code: int, message: str, errors: Optional[List[Any]] = None) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI, is_production: bool) -> None:

    @app.exception_handler(InventoryError)
    async def handle_inventory_error(request: Request, exc: InventoryError):
        if isinstance(exc, Unauthenticated):
            logger.info("auth rejected reason=%s path=%s", exc.reason, request.url.path)
        errors = exc.errors if isinstance(exc, ValidationError) else None
        return _envelope(exc.status_code, exc.message, errors)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return _envelope(status.HTTP_400_BAD_REQUEST, "Validation failed", validation_errors(exc.errors()))

    @app.exception_handler(PydanticValidationError)
    async def handle_model_validation(request: Request, exc: PydanticValidationError):
        return _envelope(status.HTTP_400_BAD_REQUEST, "Validation failed", validation_errors(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return _envelope(exc.status_code, f"Route {request.method} {request.url.path} not found")
        return _envelope(exc.status_code, str(exc.detail))

    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    async def handle_store_unavailable(request: Request, exc: Exception):
        logger.error("store failure on %s %s", request.method, request.url.path, exc_info=exc)
        message = UpstreamFailure.default_message if is_production else str(exc)
        return _envelope(UpstreamFailure.status_code, message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        message = "Internal server error" if is_production else str(exc)
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, message)
