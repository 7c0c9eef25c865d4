"""
CareSphere API application
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from caresphere.api.router import api_router
from caresphere.core.config import settings
from caresphere.core.database import engine
from caresphere.core.errors import CareSphereError
from caresphere.core.scheduler import scheduler
from caresphere.core.tasks import drain_background_tasks
from caresphere.schemas.common import ErrorResponse, HealthResponse

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION} ({settings.ENVIRONMENT})")
    if settings.ENABLE_SCHEDULER:
        await scheduler.start()
    yield
    if settings.ENABLE_SCHEDULER:
        await scheduler.stop()
    await drain_background_tasks()
    await engine.dispose()
    logger.info(f"{settings.APP_NAME} shut down")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CareSphereError)
async def caresphere_error_handler(request: Request, exc: CareSphereError):
    logger.warning(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    body = ErrorResponse(message=exc.message, error_code=exc.error_code, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


HTTP_ERROR_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "AUTHORIZATION_ERROR",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    body = ErrorResponse(
        message=str(exc.detail),
        error_code=HTTP_ERROR_CODES.get(exc.status_code, "INTERNAL_ERROR" if exc.status_code >= 500 else "HTTP_ERROR"),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(mode="json"),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    body = ErrorResponse(
        message="Request validation failed",
        error_code="VALIDATION_ERROR",
        details={"errors": jsonable_encoder(exc.errors())},
    )
    return JSONResponse(status_code=422, content=body.model_dump(mode="json"))


@app.get("/health", response_model=HealthResponse)
async def health():
    database_ok = True
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        database_ok = False
    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        timestamp=time.time(),
        version=settings.VERSION,
        database=database_ok,
    )


app.include_router(api_router)
