"""HTTP plumbing shared by every router: the response envelope, error
translation and actor resolution.

Every response body has the shape ``{success, data?, message?, error?}``.
On failure ``error`` carries the failure kind (``NotFound``, ``Forbidden``,
``InvalidTransition``, ``PreconditionFailed``, ``ValidationError``,
``AuthenticationFailed`` or ``Fault``).
"""

from typing import Any

from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.shared.errors import AuthenticationFailed, MarketplaceError
from marketplace.shared.policy import Actor
from marketplace.utils.logging import add_context, clear_context, get_logger

logger = get_logger(__name__)

_STATUS_KINDS = {
    400: "ValidationError",
    401: "AuthenticationFailed",
    403: "Forbidden",
    404: "NotFound",
    405: "NotFound",
    409: "InvalidTransition",
    422: "PreconditionFailed",
}


class Envelope(BaseModel):
    success: bool = True
    data: Any = None
    message: str | None = None
    error: str | None = None


def ok(data=None, message=None) -> Envelope:
    return Envelope(success=True, data=data, message=message)


def _failure(status_code, kind, message, data=None) -> JSONResponse:
    body = Envelope(success=False, data=data, message=message, error=kind)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _first_message(messages) -> str:
    for field, errors in messages.items():
        if isinstance(errors, (list, tuple)) and errors:
            return f"{field}: {errors[0]}"
        return f"{field}: {errors}"
    return "Invalid input"


def register_exception_handlers(app: FastAPI) -> None:
    """Translate domain failures into enveloped JSON responses."""

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        logger.info("request_rejected", path=request.url.path, kind=exc.kind, reason=exc.message)
        return _failure(exc.status_code, exc.kind, exc.message)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        messages = exc.messages if isinstance(exc.messages, dict) else {"_entity": [str(exc.messages)]}
        logger.info("request_invalid", path=request.url.path, errors=messages)
        return _failure(400, "ValidationError", _first_message(messages), data={"errors": messages})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "_request"
            errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
        return _failure(400, "ValidationError", _first_message(errors), data={"errors": errors})

    @app.exception_handler(ObjectNotFoundError)
    async def not_found_handler(request: Request, exc: ObjectNotFoundError):
        return _failure(404, "NotFound", "Resource not found")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        kind = _STATUS_KINDS.get(exc.status_code, "Fault")
        return _failure(exc.status_code, kind, str(exc.detail))

    @app.exception_handler(Exception)
    async def fault_handler(request: Request, exc: Exception):
        logger.exception("request_failed", path=request.url.path, method=request.method)
        return _failure(500, "Fault", "Internal server error")


def install_domain_context(app: FastAPI, domain) -> None:
    """Run every request inside ``domain``'s context."""

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        clear_context()
        add_context(method=request.method, path=request.url.path)
        with domain.domain_context():
            return await call_next(request)


async def current_actor(x_user_id: str | None = Header(default=None)) -> Actor:
    """Resolve the ``X-User-Id`` header into an active user's ``Actor``."""
    from protean.utils.globals import current_domain

    from marketplace.identity.user.user import User

    if not x_user_id:
        raise AuthenticationFailed("Authentication required")

    try:
        user = current_domain.repository_for(User).get(x_user_id)
    except ObjectNotFoundError as exc:
        raise AuthenticationFailed("Unknown user") from exc

    if not user.is_active:
        raise AuthenticationFailed("User account is inactive")

    add_context(user_id=str(user.id), role=user.role)
    return Actor(user_id=str(user.id), role=user.role)


async def optional_actor(x_user_id: str | None = Header(default=None)) -> Actor | None:
    """Like ``current_actor``, but anonymous callers resolve to ``None``."""
    if not x_user_id:
        return None
    return await current_actor(x_user_id)
