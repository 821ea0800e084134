from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from parlote.app import App
from parlote.config import Config
from parlote.errors import UserError
from parlote.web.error_handlers import general_exception_handler, request_validation_error_handler, user_error_handler
from parlote.web.openapi import set_custom_openapi
from parlote.web.routers import eventlog_router, sessions_router, situations_router, system_router, usage_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Parlote API",
        lifespan=lifespan,
        openapi_tags=[],
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(system_router, prefix="/api")
    app.include_router(sessions_router, prefix="/api")
    app.include_router(usage_router, prefix="/api")
    app.include_router(eventlog_router, prefix="/api")
    app.include_router(situations_router, prefix="/api")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
