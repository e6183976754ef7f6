# -*- coding: utf-8 -*-
"""
Per-request context for the Finanzas API.

Every request gets a request id (the caller's ``X-Request-ID`` when it is a
UUID, otherwise a fresh one) that is echoed back in the response and added
to every log line, together with the caller and, once the subscription gate
has run, the provider that granted access.
"""

import uuid
import time
from typing import Optional
from flask import Flask, request, g, Response

REQUEST_ID_HEADER = 'X-Request-ID'


def _incoming_request_id() -> Optional[str]:
    value = request.headers.get(REQUEST_ID_HEADER)
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None


class RequestContextMiddleware:
    """Sets up ``g`` for each request and stamps the response headers."""

    def __init__(self, app: Flask):
        self.app = app

        app.before_request(self._before_request)
        app.after_request(self._after_request)

    def _before_request(self):
        g.request_id = _incoming_request_id() or str(uuid.uuid4())
        g.request_start_time = time.time()

        # Filled in by require_auth / require_subscription
        g.current_user = None
        g.access_token = None
        g.subscription = None

    def _after_request(self, response: Response) -> Response:
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        elapsed = elapsed_ms()
        if elapsed is not None:
            response.headers['X-Response-Time'] = f"{elapsed}ms"
        return response


def get_request_id() -> Optional[str]:
    return getattr(g, 'request_id', None)


def elapsed_ms() -> Optional[float]:
    """Milliseconds since the request started, or None outside a request."""
    start = getattr(g, 'request_start_time', None)
    if start is None:
        return None
    return round((time.time() - start) * 1000, 2)


def get_request_context() -> dict:
    """Fields merged into every structured log line emitted during a request."""
    context = {
        'request_id': get_request_id(),
        'method': request.method,
        'path': request.path,
        'remote_addr': request.remote_addr,
    }

    elapsed = elapsed_ms()
    if elapsed is not None:
        context['duration_ms'] = elapsed

    user = getattr(g, 'current_user', None)
    if user is not None:
        context['user_id'] = user.id

    subscription = getattr(g, 'subscription', None)
    if subscription is not None:
        context['subscription_provider'] = subscription.provider

    return context


def init_request_context(app: Flask):
    """Initialize request context middleware for Flask application."""
    return RequestContextMiddleware(app)
