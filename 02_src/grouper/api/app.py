"""FastAPI application setup."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .routes import control, events, observability


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    The Application is started and stopped with the FastAPI lifespan.
    """
    application = application or Application()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Grouper API",
        description="Webhook and observability API for the Grouper agent",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.application = application

    origins = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(events.create_events_router(application))
    fastapi_app.include_router(observability.create_observability_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
