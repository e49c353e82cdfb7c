"""FastAPI dependencies shared by the routers."""
from __future__ import annotations

from fastapi import Request

from ..brokers import BluumBroker, BluumConfig
from ..brokers.base import Broker
from ..environment import get_bluum_base_url, get_bluum_credentials, get_http_timeout


def create_broker() -> BluumBroker:
    api_key, secret_key = get_bluum_credentials()
    config = BluumConfig(
        api_key=api_key,
        secret_key=secret_key,
        base_url=get_bluum_base_url(),
        timeout=get_http_timeout(),
    )
    return BluumBroker(config)


def get_broker(request: Request) -> Broker:
    """Return the app-wide broker, building it from the environment on first use."""
    broker = getattr(request.app.state, "broker", None)
    if broker is None:
        broker = create_broker()
        request.app.state.broker = broker
    return broker
