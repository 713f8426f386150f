from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from servicedesk.api.v1.router import router as api_v1_router
from servicedesk.config.logging import setup_logging
from servicedesk.config.settings import Settings, get_settings
from servicedesk.core.middleware import register_exception_handlers, register_middlewares
from servicedesk.db.init_db import init_db


def create_app(settings: Settings | None = None, create_tables: bool = True) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Includes the versioned API router under /api/v1.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # For production, manage the schema with migrations instead
        if create_tables and not settings.is_production():
            init_db()
        yield

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ORIGINS != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)
    return app


def run() -> None:
    import uvicorn

    setup_logging()
    uvicorn.run("servicedesk.main:create_app", factory=True, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
