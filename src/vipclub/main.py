"""ASGI application: routers, middleware, error rendering and static uploads."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from vipclub import __version__
from vipclub.api.middleware import RequestIDMiddleware, RequestLoggingMiddleware
from vipclub.api.router import api_router
from vipclub.config import settings
from vipclub.database import close_db
from vipclub.services.access import AccessError

logger = logging.getLogger(__name__)


def init_sentry() -> None:
    import sentry_sdk

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"vipclub@{__version__}",
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        send_default_pii=False,
    )
    logger.info("Sentry enabled")


if settings.sentry_dsn:
    init_sentry()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # Tables come from `vipclub db migrate`, never from create_all
    yield
    await close_db()


app = FastAPI(
    title="VIP Club API",
    summary="Access links for the admin panel and the member and VIP galleries",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug_enabled else None,
    redoc_url=None,
    openapi_url="/api/openapi.json" if settings.debug_enabled else None,
)


@app.exception_handler(AccessError)
async def render_access_error(_request: Request, exc: AccessError) -> JSONResponse:
    return JSONResponse({"error": exc.message, "state": exc.state.value}, status_code=exc.status_code)


# Starlette runs the last-added middleware first, so request IDs are set before logging
app.add_middleware(RequestLoggingMiddleware)  # type: ignore[arg-type]
app.add_middleware(RequestIDMiddleware)  # type: ignore[arg-type]
app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID", "Retry-After"],
)

app.include_router(api_router, prefix="/api")

upload_root = Path(settings.storage_path)
upload_root.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=upload_root), name="uploads")


if __name__ == "__main__":
    from vipclub.cli import serve

    serve(host="0.0.0.0", port=8000, reload=settings.is_development)
