"""Map domain exceptions onto JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketplace.cart.cart import CartRevisionConflict

logger = structlog.get_logger(__name__)


def _messages(exc):
    return getattr(exc, "messages", None) or {"_entity": [str(exc)]}


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CartRevisionConflict)
    async def revision_conflict(request: Request, exc: CartRevisionConflict):
        logger.info("Cart revision conflict", path=request.url.path)
        return JSONResponse(status_code=409, content={"errors": _messages(exc)})

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"errors": _messages(exc)})

    @app.exception_handler(ObjectNotFoundError)
    async def not_found(request: Request, exc: ObjectNotFoundError):
        return JSONResponse(status_code=404, content={"errors": _messages(exc)})
