"""Central environment and configuration helpers for Meridian."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional, Tuple

PACKAGE_DIR = Path(__file__).resolve().parent
SRC_DIR = PACKAGE_DIR.parent
PROJECT_ROOT = SRC_DIR.parent
DEFAULT_ENV_PATH = PROJECT_ROOT / ".env"

APP_DIR = Path(os.environ.get("MERIDIAN_HOME", Path.home() / ".meridian"))
CONFIG_DIR = APP_DIR / "config"
LOGS_DIR = APP_DIR / "logs"
SESSION_PATH = CONFIG_DIR / "session.json"

DEFAULT_BLUUM_BASE_URL = "https://test-service.bluumfinance.com/v1"
DEFAULT_HTTP_TIMEOUT = 30.0


def ensure_directories(paths: Iterable[Path] = (APP_DIR, CONFIG_DIR, LOGS_DIR)) -> None:
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def load_dotenv(path: Optional[Path] = None) -> None:
    """Load environment variables from a simple KEY=VALUE .env file."""
    env_path = Path(path or DEFAULT_ENV_PATH)
    if not env_path.exists():
        return

    for raw in env_path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if (value.startswith("\"") and value.endswith("\"")) or (
            value.startswith("'") and value.endswith("'")
        ):
            value = value[1:-1]
        os.environ.setdefault(key, value)


def get_bluum_credentials() -> Tuple[str, str]:
    """Return Bluum API credentials from the environment."""
    api_key = os.environ.get("BLUUM_API_KEY")
    secret_key = os.environ.get("BLUUM_SECRET_KEY")
    if not api_key or not secret_key:
        missing = [
            name
            for name, value in (
                ("BLUUM_API_KEY", api_key),
                ("BLUUM_SECRET_KEY", secret_key),
            )
            if not value
        ]
        raise RuntimeError(
            "Missing required environment variables: " + ", ".join(missing)
        )
    return api_key, secret_key


def get_bluum_base_url() -> str:
    """Return the Bluum API base URL without a trailing slash."""
    url = os.environ.get("BLUUM_API_BASE_URL") or DEFAULT_BLUUM_BASE_URL
    return url.strip().rstrip("/")


def get_http_timeout() -> float:
    """Return the vendor HTTP timeout in seconds."""
    raw = os.environ.get("MERIDIAN_HTTP_TIMEOUT")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError("MERIDIAN_HTTP_TIMEOUT must be a number of seconds.") from exc
    if value <= 0:
        raise ValueError("MERIDIAN_HTTP_TIMEOUT must be positive.")
    return value


def get_log_level() -> str:
    return os.environ.get("MERIDIAN_LOG_LEVEL", "INFO").strip().upper()


def get_log_format() -> str:
    """Return the log renderer, either 'console' or 'json'."""
    choice = os.environ.get("MERIDIAN_LOG_FORMAT", "console").strip().lower()
    if choice not in {"console", "json"}:
        raise ValueError("MERIDIAN_LOG_FORMAT must be either 'console' or 'json'.")
    return choice


def get_server_address() -> Tuple[str, int]:
    """Return the (host, port) the HTTP gateway binds to."""
    host = os.environ.get("MERIDIAN_HOST", "127.0.0.1").strip()
    port = os.environ.get("MERIDIAN_PORT", "8000").strip()
    try:
        return host, int(port)
    except ValueError as exc:
        raise ValueError("MERIDIAN_PORT must be an integer.") from exc
