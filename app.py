from __future__ import annotations

import contextlib
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api_errors import ok, register_error_handlers
from logging_config import setup_logging
from login_limiter import LoginAttemptLimiter
from persistence import DocumentStore
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    # Startup failures (unreadable or corrupt db file) propagate and abort boot.
    app.state.store = await DocumentStore.load(settings.storage)
    app.state.login_limiter = LoginAttemptLimiter()
    logger.info("APP: ready, storing state in %s", settings.storage.db_file)
    try:
        yield
    finally:
        await app.state.store.drain()


def create_app(settings: Settings | None = None) -> FastAPI:
    load_dotenv("local.env")
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    from endpoints.auth_endpoints import router as auth_router

    app = FastAPI(title="Groundwater decision-support API (demo)", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    if settings.debug_log_requests:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            response = await call_next(request)
            logger.debug("REQUEST: %s %s -> %s", request.method, request.url.path, response.status_code)
            return response

    @app.get("/health")
    async def health(request: Request):
        return ok(request, {"ok": True})

    app.include_router(auth_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
