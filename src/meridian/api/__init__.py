"""FastAPI gateway for Meridian."""
from .main import create_app, serve

__all__ = ["create_app", "serve"]
