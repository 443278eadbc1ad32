import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.api.v1.router import router as v1_router
from app.core.config import settings
from app.core.errors import PipelineError
from app.core.telemetry import setup_telemetry
from app.schemas.common import ErrorResponse

log = logging.getLogger(__name__)

app = FastAPI(title="Listing Back-office API", version="0.1.0")


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    if exc.status_code >= 500:
        log.warning("%s %s failed: code=%s context=%s", request.method, request.url.path, exc.code, exc.context())
    details = list(exc.detail)
    if exc.context():
        details.insert(0, exc.context())
    body = ErrorResponse(code=exc.code, message=exc.message, details=details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("%s %s crashed", request.method, request.url.path)
    body = ErrorResponse(code="internal_error", message="Internal server error")
    return JSONResponse(status_code=500, content=body.model_dump())


setup_telemetry(app)
app.include_router(v1_router)
app.mount("/media", StaticFiles(directory=settings.blob_store_dir, check_dir=False), name="media")
