import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from services.errors import ScolarFlowError

logger = logging.getLogger(__name__)


def _latency_ms(request: Request):
    start = getattr(request.state, "started_at", None)
    return int((time.perf_counter() - start) * 1000) if start else None


def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message), latency_ms=_latency_ms(request))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def add_error_handlers(app: FastAPI):
    @app.exception_handler(ScolarFlowError)
    async def scolarflow_exception_handler(request: Request, exc: ScolarFlowError):
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        return _error(request, exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
        )
        return _error(request, 422, "VALIDATION_ERROR", messages)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Erreur non gérée sur %s %s", request.method, request.url.path, exc_info=exc)
        return _error(request, 500, "INTERNAL_ERROR", str(exc))
