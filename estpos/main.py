import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from estpos.api.v1.api import api_router
from estpos.core.config import settings
from estpos.core.exceptions import AppException

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(
        f"[estpos] {exc.error_code} on {request.method} {request.url.path}: {exc.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/health", tags=["ops"])
async def health():
    return {"status": "ok", "environment": settings.ENVIRONMENT}
