"""FastAPI application exposing the Quartz Expert agent."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quartz_expert.api.routes.agent import router as agent_router
from quartz_expert.api.session import SessionStore
from quartz_expert.config import Settings, get_settings
from quartz_expert.monitoring import MetricsMonitor
from quartz_expert.service import QuartzExpert


def create_app(
    expert: QuartzExpert | None = None,
    monitor: MetricsMonitor | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        expert: Pre-built service; one is built from settings on startup if
            omitted.
        monitor: Metrics side channel; built from settings if omitted.
        settings: Settings for a service built on startup (defaults to the
            environment). Ignored when ``expert`` is given.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Only components built here are closed on shutdown; callers own theirs.
        owned = []
        try:
            if expert is not None:
                service = expert
            else:
                service = QuartzExpert(settings or get_settings())
                owned.append(service)
            app_settings = service.settings

            if monitor is not None:
                metrics_monitor = monitor
            else:
                metrics_monitor = MetricsMonitor(
                    agent_id=app_settings.agent_id,
                    url=app_settings.monitor_url if app_settings.monitor_enabled else None,
                    timeout=app_settings.monitor_timeout,
                )
                owned.append(metrics_monitor)

            app.state.expert = service.init()
            app.state.sessions = SessionStore(ttl_seconds=app_settings.session_ttl_seconds)
            app.state.monitor = metrics_monitor
            yield
        finally:
            for component in reversed(owned):
                component.close()

    app = FastAPI(
        title="Quartz Expert API",
        description="RAG-powered Q&A API for the Quartz documentation",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS middleware for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict to specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(agent_router)

    return app


# Create app instance for uvicorn
app = create_app()
