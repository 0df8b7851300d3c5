"""HTTP mapping for the storefront's error taxonomy.

Conflicts on unique keys are resolved inside the domain and never reach
this layer.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.gateway.port import GatewayRejectedError, GatewayUnavailableError
from storefront.identity_provider.port import AuthenticationError

logger = structlog.get_logger(__name__)


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": exc.messages})


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc) or "Not found"})


async def _unauthorized(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": str(exc) or "Unauthorized"},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _upstream_unavailable(request: Request, exc: GatewayUnavailableError) -> JSONResponse:
    logger.warning("Payment gateway unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"error": "Payment gateway unavailable, retry shortly"})


async def _upstream_rejected(request: Request, exc: GatewayRejectedError) -> JSONResponse:
    logger.error("Payment gateway rejected request", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=502, content={"error": "Payment gateway rejected the request"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(AuthenticationError, _unauthorized)
    app.add_exception_handler(GatewayUnavailableError, _upstream_unavailable)
    app.add_exception_handler(GatewayRejectedError, _upstream_rejected)
