"""HTTP plumbing shared by every router: identity dependencies, service
lookup, and the mapping from marketplace errors to responses.

The upstream auth layer verifies credentials and forwards the caller as
``X-User-Id`` / ``X-User-Role`` headers. Nothing here checks tokens.
"""

import structlog
from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.errors import (
    ForbiddenError,
    InsufficientStockError,
    InternalError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
    PaymentFailedError,
    Severity,
    UnauthenticatedError,
    ValidationError,
)
from shared.identity import (
    CustomerIdentity,
    Identity,
    SellerIdentity,
    identity_from_assertion,
    require_customer,
    require_seller,
)

logger = structlog.get_logger(__name__)

_STATUS_CODES = {
    ValidationError: 400,
    InvalidStateError: 400,
    UnauthenticatedError: 401,
    PaymentFailedError: 402,
    ForbiddenError: 403,
    NotFoundError: 404,
    InsufficientStockError: 409,
    InternalError: 500,
}


def status_code_for(exc: MarketplaceError) -> int:
    for error_cls in type(exc).__mro__:
        if error_cls in _STATUS_CODES:
            return _STATUS_CODES[error_cls]
    return 500


# ---------------------------------------------------------------------------
# Identity dependencies
# ---------------------------------------------------------------------------
def current_identity(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Identity:
    if not x_user_id or not x_user_role:
        raise UnauthenticatedError("Access denied. No identity provided.")
    return identity_from_assertion(x_user_id, x_user_role.upper())


def current_customer(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CustomerIdentity:
    return require_customer(current_identity(x_user_id, x_user_role))


def current_seller(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> SellerIdentity:
    return require_seller(current_identity(x_user_id, x_user_role))


def services(request: Request):
    """The service container the application stored at startup."""
    return request.app.state.services


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.severity is Severity.INTERNAL:
        logger.error("internal_error", path=request.url.path, kind=exc.kind)
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"success": False, **exc.to_dict()},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: ARG001
    messages: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body"
        messages.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return await marketplace_error_handler(request, ValidationError(messages))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unexpected_error", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={"success": False, **InternalError().to_dict()},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
