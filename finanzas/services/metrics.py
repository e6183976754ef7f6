# -*- coding: utf-8 -*-
"""
Service for managing Prometheus metrics.

Each application gets its own ``CollectorRegistry`` so several apps (one per
test) can live in the same process. Includes middleware that records HTTP
request metrics and the ``/metrics`` exposition endpoint.
"""

import time
import uuid
from typing import Optional
from flask import Flask, request, g, current_app, has_app_context
from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client.exposition import generate_latest


def init_metrics(app: Flask) -> None:
    """Initialize metrics service and endpoints."""
    service = MetricsService(enabled=app.config.get("METRICS_ENABLED", True))
    app.extensions['metrics'] = service

    if service.enabled:
        @app.before_request
        def before_request():
            g.metrics_start_time = time.time()

        @app.after_request
        def after_request(response):
            start = getattr(g, 'metrics_start_time', None)
            if start is not None:
                service.record_http_request(
                    route=request.path,
                    method=request.method,
                    status_code=response.status_code,
                    duration_seconds=time.time() - start
                )
            return response

        @app.route("/metrics")
        def metrics():
            return generate_latest(service.registry), 200, {
                'Content-Type': 'text/plain; version=0.0.4; charset=utf-8'}


def get_metrics_service() -> Optional['MetricsService']:
    """Get the metrics service instance from the current app context."""
    if has_app_context():
        return current_app.extensions.get('metrics')
    return None


class MetricsService:
    """Service for managing Prometheus metrics."""

    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None):
        self.enabled = enabled
        self.registry = registry if registry is not None else CollectorRegistry()

        if self.enabled:
            self.http_requests_total = Counter(
                "finanzas_http_requests_total",
                "Total number of HTTP requests.",
                ["route", "method", "status"],
                registry=self.registry
            )
            self.http_request_duration_seconds = Histogram(
                "finanzas_http_request_duration_seconds",
                "Duration of HTTP requests in seconds.",
                ["route", "method"],
                registry=self.registry
            )
            self.webhook_events_total = Counter(
                "finanzas_webhook_events_total",
                "Webhook deliveries by provider, event and outcome.",
                ["provider", "event", "outcome"],
                registry=self.registry
            )
            self.subscription_gate_total = Counter(
                "finanzas_subscription_gate_total",
                "Subscription gate decisions.",
                ["decision", "source"],
                registry=self.registry
            )
            self.rate_limit_hits_total = Counter(
                "finanzas_rate_limit_hits_total",
                "Total number of rate limit hits.",
                ["route"],
                registry=self.registry
            )

    def record_http_request(
            self,
            route: str,
            method: str,
            status_code: int,
            duration_seconds: float):
        """Record an HTTP request."""
        if self.enabled:
            normalized_route = self._normalize_route(route)
            self.http_requests_total.labels(
                route=normalized_route,
                method=method,
                status=status_code).inc()
            self.http_request_duration_seconds.labels(
                route=normalized_route, method=method).observe(duration_seconds)

    def record_webhook_event(self, provider: str, event: str, outcome: str):
        if self.enabled:
            self.webhook_events_total.labels(
                provider=provider, event=event or "unknown", outcome=outcome).inc()

    def record_subscription_gate(self, decision: str, source: str):
        if self.enabled:
            self.subscription_gate_total.labels(decision=decision, source=source or "none").inc()

    def record_rate_limit_hit(self, route: str):
        if self.enabled:
            self.rate_limit_hits_total.labels(route=self._normalize_route(route)).inc()

    def get_metrics(self) -> str:
        """Get metrics data as text."""
        if self.enabled:
            return generate_latest(self.registry).decode('utf-8')
        return ""

    def _normalize_route(self, route: str) -> str:
        parts = route.split('/')
        for i, part in enumerate(parts):
            if part.isdigit():
                parts[i] = '{id}'
                continue
            try:
                uuid.UUID(part)
                parts[i] = '{uuid}'
            except (ValueError, AttributeError):
                pass
        return '/'.join(parts)
