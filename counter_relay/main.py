"""
Uvicorn launcher for the Sui Counter Relay.

Usage:
  python -m counter_relay.main [--host 0.0.0.0] [--port 4000]
                               [--reload] [--log-level info]

Environment overrides (if flags not provided):
  HOST, PORT, RELOAD, LOG_LEVEL, LOG_FORMAT

Configuration is validated before the server starts: a missing or invalid
signer, a missing PACKAGE_ID or an unknown SUI_NETWORK exits with status 1.
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional

import uvicorn

from .config import load_config
from .context import build_context
from .errors import StartupError
from .logging import get_logger, setup_logging
from .version import SERVICE_NAME


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "y", "on")


def main(argv: Optional[list[str]] = None) -> None:
    cfg = load_config()
    setup_logging(service_name=SERVICE_NAME, level=cfg.log_level, log_format=cfg.log_format)
    log = get_logger(__name__)

    try:
        build_context(cfg)
    except StartupError as e:
        log.error("startup_failed", error=str(e))
        sys.exit(1)

    parser = argparse.ArgumentParser(description="Run the Sui Counter Relay (uvicorn)")
    parser.add_argument("--host", default=cfg.host, help="Bind address (default: %(default)s)")
    parser.add_argument("--port", type=int, default=cfg.port, help="Port (default: %(default)s)")
    parser.add_argument("--reload", action="store_true", default=_env_bool("RELOAD", False), help="Enable autoreload (dev only)")
    parser.add_argument("--log-level", default=cfg.log_level.lower(), help="Log level for uvicorn (default: %(default)s)")
    args = parser.parse_args(argv)

    log.info("relay_listening", host=args.host, port=args.port)

    # Factory import string so the app (and its ledger client) is built inside the server process.
    uvicorn.run(
        "counter_relay.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
