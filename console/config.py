"""Runtime settings for the console and its development backend."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_API_URL = "http://localhost:8000/api/v1"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in TRUTHY


@dataclass
class ConsoleConfig:
    api_url: str = DEFAULT_API_URL
    timeout: float = 10.0
    host: str = "127.0.0.1"
    port: int = 8050
    debug: bool = False
    log_level: str = "INFO"
    page_size: int = 10

    @classmethod
    def from_env(cls) -> "ConsoleConfig":
        """Builds a config from env vars.

        Env vars:
          CONSOLE_API_URL=<http://host/api/v1>  -> REST backend base URL
          CONSOLE_TIMEOUT=10                    -> request timeout in seconds
          CONSOLE_HOST / CONSOLE_PORT           -> where the Dash server listens
          CONSOLE_DEBUG=1                       -> Dash debug mode
          CONSOLE_LOG_LEVEL=INFO                -> root log level
          DEVSERVER_PAGE_SIZE=10                -> rows per page in the dev backend
        """
        try:
            timeout = float(os.getenv("CONSOLE_TIMEOUT", 10.0))
            port = int(os.getenv("CONSOLE_PORT", 8050))
            page_size = int(os.getenv("DEVSERVER_PAGE_SIZE", 10))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid numeric console setting: {exc}") from exc
        if page_size < 1:
            raise ValueError("DEVSERVER_PAGE_SIZE must be at least 1")
        return cls(
            api_url=os.getenv("CONSOLE_API_URL", DEFAULT_API_URL).rstrip("/"),
            timeout=timeout,
            host=os.getenv("CONSOLE_HOST", "127.0.0.1"),
            port=port,
            debug=_env_flag("CONSOLE_DEBUG"),
            log_level=os.getenv("CONSOLE_LOG_LEVEL", "INFO").upper(),
            page_size=page_size,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
