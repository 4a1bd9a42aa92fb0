import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import RelayError
from .routers import gateway_callbacks, pay_endpoints
from .schemas.relay import now_iso
from .settings import settings
from .utils.observability import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    logger.info(
        "%s starting (env=%s, gateway=%s), config present: %s",
        settings.APP_NAME, settings.APP_ENV, settings.gateway_base_url, settings.presence(),
    )
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pay_endpoints.router, tags=["Payments"])
app.include_router(gateway_callbacks.router, tags=["Gateway Callbacks"])


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("%s %s crashed", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


@app.get("/health", tags=["Ops"])
async def health():
    return {
        "status": "Server is running",
        "timestamp": now_iso(),
        "environment": settings.APP_ENV,
        "production": settings.is_production,
        "env": settings.presence(),
    }
