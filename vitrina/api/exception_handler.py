from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from vitrina.core.exceptions import GatewayError, ValidationError

logger = logging.getLogger(__name__)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            content={"status": "Failure", "message": str(exc), "errors": exc.errors},
            status_code=422,
        )

    @app.exception_handler(GatewayError)
    async def gateway_exception_handler(request: Request, exc: GatewayError):
        logger.error(f"Gateway error on {request.url.path}: {exc}")
        return JSONResponse(
            content={"status": "Failure", "message": str(exc), "operation": exc.operation},
            status_code=502,
        )
