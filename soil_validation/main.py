"""
Soil Validation API entry point.
"""
import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from soil_validation.routers.soil_validation import router as soil_validation_router

logging.basicConfig(
    level=os.environ.get("SOIL_VALIDATION_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Soil Data Validation API",
    description="Validation and anomaly detection for soil test reports",
    version="1.0.0",
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled errors and return a generic JSON 500."""
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. Please try again later."},
    )


app.include_router(soil_validation_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
