from __future__ import annotations

"""
Prometheus metrics for the relay and the /metrics exporter.

Recorded series
---------------
- http_requests_total{method,path,status}
- http_request_duration_seconds{method,path,status}  (histogram)
- http_inprogress_requests{method,path}               (gauge)
- counter_transactions_total{function,outcome}
    outcome is ``success`` / ``failure`` (finalized, by effects status) or
    ``error`` (build, submit or finality wait raised)
- service_info{name,version}

Each :class:`Metrics` owns its own registry so several apps (e.g. in tests)
can live in one process.

Usage
-----
    from counter_relay.metrics import setup_metrics

    metrics = setup_metrics(app, service_version=__version__)
"""

import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI
from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, Info, PlatformCollector,
                               ProcessCollector, generate_latest)
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Receive, Scope, Send

from .version import SERVICE_NAME

_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class Metrics:
    """
    Holder for registry and metric objects. Exposed via app.state.metrics and
    the relay context.
    """

    def __init__(self, service_name: str = SERVICE_NAME, service_version: Optional[str] = None) -> None:
        self.registry = CollectorRegistry()
        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)

        self.http_inprogress = Gauge(
            "http_inprogress_requests",
            "In-progress HTTP requests",
            ["method", "path"],
            registry=self.registry,
        )
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
            registry=self.registry,
        )
        # Mutating endpoints wait for finality, hence the long tail buckets
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "path", "status"],
            buckets=_LATENCY_BUCKETS,
            registry=self.registry,
        )
        self.transactions_total = Counter(
            "counter_transactions_total",
            "Counter transactions submitted by the relay",
            ["function", "outcome"],
            registry=self.registry,
        )

        self.service_info = Info("service", "Service metadata", registry=self.registry)
        payload = {"name": service_name}
        if service_version:
            payload["version"] = service_version
        self.service_info.info(payload)

    def render_latest(self) -> bytes:
        return generate_latest(self.registry)


# ------------------------------ Middleware -----------------------------------


def _extract_path_template(scope: Scope) -> str:
    """
    Low-cardinality path label: the matched route template when available,
    else the raw path.
    """
    route = scope.get("route")
    for attr in ("path_format", "path"):
        val = getattr(route, attr, None) if route is not None else None
        if isinstance(val, str) and val:
            return val
    return scope.get("path") or ""


class PrometheusMiddleware:
    """
    Plain ASGI middleware recording HTTP metrics.
    """

    def __init__(self, app: ASGIApp, metrics: Metrics):
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        start = time.perf_counter()
        status_code = 500

        async def send_wrapped(message: Dict[str, Any]) -> None:
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
            await send(message)

        # The route is only resolved once routing ran, so labels are taken afterwards
        inprogress = self.metrics.http_inprogress.labels(method, scope.get("path") or "")
        inprogress.inc()
        try:
            await self.app(scope, receive, send_wrapped)
        finally:
            inprogress.dec()
            labels = (method, _extract_path_template(scope), str(status_code))
            self.metrics.http_requests_total.labels(*labels).inc()
            self.metrics.http_request_duration_seconds.labels(*labels).observe(time.perf_counter() - start)


# ------------------------------ Router ---------------------------------------


def create_metrics_router(metrics: Metrics, path: str = "/metrics") -> APIRouter:
    router = APIRouter()

    @router.get(path, include_in_schema=False)
    async def metrics_endpoint() -> Response:
        try:
            return Response(content=metrics.render_latest(), media_type=CONTENT_TYPE_LATEST)
        except Exception as e:
            return PlainTextResponse(f"metrics error: {e}", status_code=500)

    return router


def setup_metrics(
    app: FastAPI,
    *,
    service_name: str = SERVICE_NAME,
    service_version: Optional[str] = None,
    path: str = "/metrics",
) -> Metrics:
    """
    Create the registry, add the HTTP middleware and mount the exporter.

    Returns the :class:`Metrics` instance and stores it in ``app.state.metrics``.
    """
    metrics = Metrics(service_name=service_name, service_version=service_version)
    app.add_middleware(PrometheusMiddleware, metrics=metrics)
    app.include_router(create_metrics_router(metrics, path))
    app.state.metrics = metrics
    return metrics


__all__ = ["Metrics", "PrometheusMiddleware", "create_metrics_router", "setup_metrics"]
