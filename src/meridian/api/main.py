"""HTTP gateway that proxies the Bluum API under ``/api``."""
from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from ..brokers.base import Broker
from ..environment import get_log_format, get_log_level, get_server_address
from ..log import configure_logging, get_logger
from .errors import install_error_handlers
from .routers import investment, wealth

logger = get_logger(__name__)


def create_app(broker: Broker | None = None) -> FastAPI:
    """Create the gateway app. ``broker`` overrides the environment-built client."""
    app = FastAPI(
        title="Meridian Gateway",
        description="Normalizes client payloads and relays them to the Bluum brokerage API.",
        version="0.1.0",
    )
    app.state.broker = broker
    install_error_handlers(app)
    app.include_router(investment.router, prefix="/api")
    app.include_router(wealth.router, prefix="/api")

    @app.get("/health", include_in_schema=False)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def serve(host: str | None = None, port: int | None = None) -> None:
    configure_logging(get_log_level(), get_log_format())
    default_host, default_port = get_server_address()
    host = host or default_host
    port = port or default_port
    logger.info("gateway_starting", host=host, port=port)
    uvicorn.run(create_app(), host=host, port=port, log_config=None)
