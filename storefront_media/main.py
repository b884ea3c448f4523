import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes_health import router as health_router
from .api.images import router as images_router
from .core.config import settings
from .core.errors import PipelineError

logger = logging.getLogger(__name__)

app = FastAPI(title="Storefront Media API", description="Product image delivery for the storefront")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    if exc.status_code >= 500:
        logger.error("[api] %s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": str(exc.errors())})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("[api] unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Failed to convert image", "details": str(exc)})


app.include_router(health_router)
app.include_router(images_router)
