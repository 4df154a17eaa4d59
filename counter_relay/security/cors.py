from __future__ import annotations

"""
CORS configuration for the relay.

The relay is called from a local development frontend, so the default policy
is a single origin regex (``http://localhost:3xx`` .. ``http://localhost:3xxxx``)
with credentials allowed. Exact origins may be listed as well.

Reject insecure combinations: a literal ``"*"`` origin cannot be combined with
credentials.

Usage
-----
    from counter_relay.security.cors import setup_cors

    setup_cors(app, settings.to_cors_config())
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from ..logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class CORSConfig:
    allow_origins: List[str]
    allow_origin_regex: Optional[str]
    allow_methods: List[str]
    allow_headers: List[str]
    expose_headers: List[str]
    allow_credentials: bool
    max_age: int
    debug: bool = False

    def validate(self) -> "CORSConfig":
        if "*" in self.allow_origins and self.allow_credentials:
            raise ValueError('CORS origin "*" is incompatible with allow_credentials=true')
        if self.allow_origin_regex:
            try:
                re.compile(self.allow_origin_regex)
            except re.error as e:
                raise ValueError(f"Invalid CORS origin regex {self.allow_origin_regex!r}: {e}") from e
        if self.max_age < 0:
            raise ValueError(f"Invalid CORS max_age: {self.max_age}")
        return self


def setup_cors(app: FastAPI, config: CORSConfig) -> CORSConfig:
    """
    Validate ``config`` and attach Starlette's CORSMiddleware to ``app``.
    """
    cfg = config.validate()

    if cfg.debug:
        log.info(
            "cors_config",
            allow_origins=cfg.allow_origins,
            allow_origin_regex=cfg.allow_origin_regex,
            allow_credentials=cfg.allow_credentials,
            max_age=cfg.max_age,
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.allow_origins,
        allow_origin_regex=cfg.allow_origin_regex,
        allow_credentials=cfg.allow_credentials,
        allow_methods=cfg.allow_methods,
        allow_headers=cfg.allow_headers,
        expose_headers=cfg.expose_headers,
        max_age=cfg.max_age,
    )
    return cfg


__all__ = ["CORSConfig", "setup_cors"]
