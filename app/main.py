from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.lobby import router as lobby_router
from app.api.oauth import router as oauth_router
from app.core.config import SETTINGS
from app.core.logging import setup_logging
from app.middleware.request_context import (
    RequestContextFilter,
    RequestContextMiddleware,
)
from app.services.provider_client import build_http_client

# Before any app logger emits. Masks the client secret, stamps request IDs.
setup_logging(
    SETTINGS.log_level,
    json_format=SETTINGS.log_json,
    redact=(SETTINGS.client_secret,),
    filters=(RequestContextFilter(),),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # One pooled client for every outbound call to Memberful.
    http_client = build_http_client(SETTINGS.http_timeout_sec)
    app.state.http_client = http_client
    try:
        yield
    finally:
        http_client.close()


app = FastAPI(
    title="memberful-oauth-demo",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(RequestContextMiddleware)

app.include_router(lobby_router)
app.include_router(oauth_router)

logger.info(
    "memberful-oauth-demo started  env=%s log_level=%s port=%d provider=%s "
    "begin=%s callback=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.memberful_url,
    SETTINGS.begin_oauth_flow_path,
    SETTINGS.callback_path,
)
