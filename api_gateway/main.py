"""
FastAPI application.

Wires the create-video route, CORS, error responses and startup tasks.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from shared.config import settings
from shared.errors import PipelineError, ValidationError
from shared.logging import get_logger
from api_gateway.routes import create_video

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create working directories and the shared job slots."""
    settings.ensure_directories()
    app.state.job_slots = asyncio.Semaphore(settings.max_concurrent_jobs)
    logger.info(
        "Video Maker backend starting",
        extra={
            "environment": settings.environment,
            "upload_dir": str(settings.upload_dir),
            "temp_dir": str(settings.temp_dir),
            "output_dir": str(settings.output_dir),
            "max_concurrent_jobs": settings.max_concurrent_jobs,
        }
    )
    yield
    app.state.job_slots = None


app = FastAPI(title="Video Maker", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Skipped-Media"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Client input problems become 400 with the message."""
    logger.warning(f"Rejected request: {exc}", extra={"path": request.url.path})
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed forms (e.g. a text field where a file is expected) become 400."""
    fields = sorted({str(error["loc"][1]) for error in exc.errors() if len(error.get("loc", ())) > 1})
    logger.warning(
        f"Rejected malformed request: {fields}",
        extra={"path": request.url.path, "fields": fields}
    )
    message = "Invalid upload form."
    if fields:
        message = f"Invalid upload form: {', '.join(fields)} must be uploaded files."
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Processing failures become 500; details stay in the server log."""
    logger.error(f"Error in {request.url.path}: {exc}", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"error": "Failed to create video."})


app.include_router(create_video.router)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Liveness banner."""
    return "Video Maker Backend is running (multi-media mode)"


if __name__ == "__main__":
    uvicorn.run("api_gateway.main:app", host=settings.host, port=settings.port)
