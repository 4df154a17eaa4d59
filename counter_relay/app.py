from __future__ import annotations

import dataclasses
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .adapters.keypair import SigningIdentity
from .config import Settings, load_config
from .context import RelayContext, build_context
from .logging import get_logger
from .metrics import setup_metrics
from .middleware.errors import install_error_handlers
from .middleware.logging import install_access_log_middleware
from .middleware.request_id import install_request_id_middleware
from .routers import build_router
from .security.cors import setup_cors
from .version import __version__

log = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    App lifespan: announce the signer, then close the ledger client on shutdown.
    """
    ctx: RelayContext = app.state.relay
    log.info(
        "relay_started",
        network=ctx.settings.sui_network,
        rpc_url=getattr(ctx.sui, "url", None),
        address=ctx.identity.address,
        package_id=ctx.package_id,
        counter_id=ctx.settings.counter_id,
    )
    try:
        yield
    finally:
        close = getattr(ctx.sui, "close", None)
        if close is not None:
            await close()
        log.info("relay_stopped")


def create_app(
    settings: Optional[Settings] = None,
    *,
    sui=None,
    identity: Optional[SigningIdentity] = None,
) -> FastAPI:
    """
    FastAPI factory. Resolves the relay context (raising StartupError on bad
    configuration), then mounts middleware, metrics and routers.
    """
    cfg = settings or load_config()
    ctx = build_context(cfg, sui=sui, identity=identity)

    app = FastAPI(
        title="Sui Counter Relay",
        version=__version__,
        lifespan=_lifespan,
    )

    # Error → JSON mapping
    install_error_handlers(app)

    # Middleware: the last one added is outermost
    install_access_log_middleware(app)
    install_request_id_middleware(app)
    setup_cors(app, cfg.to_cors_config())
    metrics = setup_metrics(app, service_version=__version__)

    app.state.config = cfg
    app.state.relay = dataclasses.replace(ctx, metrics=metrics)

    app.include_router(build_router())
    return app


__all__ = ["create_app"]
