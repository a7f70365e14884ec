from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal.api.certificates import router as certificates_router
from portal.api.errors import portal_error_handler
from portal.api.health import router as health_router
from portal.api.metrics_endpoint import router as metrics_router
from portal.api.profiles import router as profiles_router
from portal.api.requests import router as requests_router
from portal.api.session import router as session_router
from portal.api.verify import router as verify_router
from portal.core.config import SETTINGS
from portal.core.logging import setup_logging
from portal.db.redis import lifespan_redis
from portal.middleware.metrics import MetricsMiddleware
from portal.middleware.request_context import RequestContextMiddleware
from portal.services.errors import PortalError

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_redis():
        yield


app = FastAPI(
    title="certifypro-portal",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route handler,
# so every metric and log line already has a request ID.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(PortalError, portal_error_handler)  # type: ignore[arg-type]

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(verify_router)
app.include_router(certificates_router)
app.include_router(requests_router)
app.include_router(session_router)
app.include_router(profiles_router)

logger.info(
    "certifypro-portal started  env=%s log_level=%s port=%d backend=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.api_base_url,
    "on" if SETTINGS.is_dev else "off",
)
