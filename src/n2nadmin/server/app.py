"""
n2n-admin FastAPI Application.

This module provides the main entry point for the admin server, which sits
next to an n2n supernode and exposes its state over an authenticated API.

Responsibilities:
    - Node and community inventory
    - Live node status from the supernode management port
    - Relay detection from the supernode journal
    - Supernode configuration, restart and log streaming
    - Login throttling and session management
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from n2nadmin import __version__
from n2nadmin.db.base import close_database, initialize_database
from n2nadmin.models.enums import LogLevel
from n2nadmin.server.auth.routes import router as auth_router
from n2nadmin.server.background.log_tailer import follow_supernode_log
from n2nadmin.server.background.sweepers import (
    sweep_expired_sessions,
    sweep_geoip_cache,
    sweep_login_attempts,
)
from n2nadmin.server.config import ServerConfig, config
from n2nadmin.server.endpoints import (
    communities,
    health,
    nodes,
    settings,
    supernode,
    tools,
)
from n2nadmin.server.state import Services
from n2nadmin.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


# =============================================================================
# Application Setup
# =============================================================================


def create_app(
    cfg: ServerConfig | None = None,
    services: Services | None = None,
    start_background: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        cfg: Server configuration. Defaults to the global config.
        services: Prebuilt services. Built from ``cfg`` on startup if omitted.
        start_background: Whether to start the log tailer and sweepers.
    """
    cfg = cfg or config
    background_tasks: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize database and background tasks; clean up on shutdown."""
        logger.info("n2n-admin starting up")
        logger.debug(f"Database file: {cfg.DB_FILE}")
        logger.debug(f"Management endpoint: {cfg.MGMT_ADDR}")

        initialize_database(cfg.DB_FILE)
        app.state.services = services or Services.build(cfg)

        if start_background:
            _start_background_tasks(app.state.services, background_tasks)

        yield

        logger.info("n2n-admin shutting down")

        for task in background_tasks:
            task.cancel()

        if background_tasks:
            await asyncio.gather(*background_tasks, return_exceptions=True)

        app.state.services.close()
        close_database()

        logger.info("n2n-admin shut down complete")

    app = FastAPI(
        title="n2n-admin",
        description="Web administration for an n2n supernode",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.background_tasks = background_tasks

    _configure_cors(app, cfg.CORS_ORIGINS)

    # Include API routers (all under /api prefix)
    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(auth_router, prefix="/api", tags=["Auth"])
    app.include_router(nodes.router, prefix="/api", tags=["Nodes"])
    app.include_router(communities.router, prefix="/api", tags=["Communities"])
    app.include_router(settings.router, prefix="/api", tags=["Settings"])
    app.include_router(supernode.router, prefix="/api", tags=["Supernode"])
    app.include_router(tools.router, prefix="/api", tags=["Tools"])

    return app


def _configure_cors(app: FastAPI, origins: str) -> None:
    """
    Allow cross-origin requests from a comma-separated origin list.

    Empty means same-origin only; ``*`` allows any origin without
    credentials.
    """
    allowed = [o.strip() for o in origins.split(",") if o.strip()]
    if not allowed:
        logger.debug("CORS not configured, same-origin requests only")
        return

    allow_all = allowed == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["Origin", "Content-Length", "Content-Type", "Authorization"],
    )
    logger.info(f"CORS enabled for: {', '.join(allowed)}")


def _start_background_tasks(services: Services, background_tasks: set) -> None:
    """Start the relay log tailer and the periodic sweepers."""
    cfg = services.config
    tasks_to_start = [
        ("relay_log_tailer", follow_supernode_log(services.tailer)),
        (
            "login_sweeper",
            sweep_login_attempts(services.throttle, cfg.LOGIN_SWEEP_SECONDS),
        ),
        ("geoip_sweeper", sweep_geoip_cache(services.geoip, cfg.IP_CACHE_SWEEP_SECONDS)),
        ("session_sweeper", sweep_expired_sessions(cfg.SESSION_SWEEP_SECONDS)),
    ]

    for name, coro in tasks_to_start:
        task = asyncio.create_task(coro, name=name)
        background_tasks.add(task)
        task.add_done_callback(background_tasks.discard)

    logger.debug(f"Started {len(tasks_to_start)} background tasks")


app = create_app()


# =============================================================================
# Entry Point
# =============================================================================


def run(port: int | None = None):
    """Run the admin server using uvicorn."""
    import uvicorn

    # Configure logging before starting uvicorn
    configure_logging(config.LOG_LEVEL)

    uvicorn_level_map = {
        LogLevel.FULL: "debug",
        LogLevel.DEBUG: "debug",
        LogLevel.INFO: "info",
        LogLevel.WARNING: "warning",
    }
    uvicorn_level = uvicorn_level_map.get(config.LOG_LEVEL, "info")

    port = port or config.PORT
    logger.info(f"Starting n2n-admin on {config.BIND_IP}:{port}")

    uvicorn.run(
        app,
        host=config.BIND_IP,
        port=port,
        log_level=uvicorn_level,
        log_config=None,
    )
