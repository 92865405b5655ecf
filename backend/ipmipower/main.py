"""ipmipower FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from ipmipower import __version__
from ipmipower.config import Settings
from ipmipower.services.ipmi_controller import IpmiController, PowerController
from ipmipower.services.power_service import PowerService
from ipmipower.services.wol_listener import WolListener
from ipmipower.utils.mac import parse_mac

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    # === STARTUP ===
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)

    listener = WolListener(
        power_service=app.state.power_service,
        target_mac=app.state.target_mac,
        port=settings.wol_port,
        bind_address=settings.wol_bind_address,
    )
    listener.start()
    app.state.wol_listener = listener
    logger.info(
        "ipmipower v%s started, web UI on %s:%s, BMC %s",
        __version__, settings.web_host, settings.web_port, settings.ipmi_host,
    )

    try:
        yield
    finally:
        # === SHUTDOWN ===
        await listener.stop()
        app.state.wol_listener = None
        logger.info("ipmipower shutting down")


def setup_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Noisy third-party loggers to WARNING
    for noisy in ("pyghmi", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def build_power_service(settings: Settings, controller: PowerController | None = None) -> PowerService:
    """Wire the orchestrator to the configured BMC (or an injected controller)."""
    if controller is None:
        controller = IpmiController(
            host=settings.ipmi_host,
            username=settings.ipmi_username,
            password=settings.ipmi_password,
            port=settings.ipmi_port,
        )
    return PowerService(controller, timeout=settings.action_timeout_seconds)


def create_app(settings: Settings, controller: PowerController | None = None) -> FastAPI:
    """Application factory. Settings are passed in, never read from globals."""
    from ipmipower.api.routes import api_router, web_router

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=_lifespan,
    )

    app.state.settings = settings
    app.state.target_mac = parse_mac(settings.wol_mac)
    app.state.power_service = build_power_service(settings, controller)
    app.state.wol_listener = None

    app.include_router(api_router, prefix="/api")
    app.include_router(web_router)

    return app


def run(settings: Settings, **kwargs: Any) -> None:
    import uvicorn

    uvicorn.run(
        create_app(settings),
        host=settings.web_host,
        port=settings.web_port,
        log_level=settings.log_level.lower(),
        **kwargs,
    )
