"""
Structured JSON logging service for the Finanzas API.

Provides structured logging with:
- JSON format output when enabled
- Request context integration (request_id, authenticated user)
- Consistent log structure across the application
- Auth, webhook, subscription-gate and rate-limit event helpers

Logs include: timestamp, level, message, request_id, method, path, status,
user_id, duration_ms, and other contextual information.
"""

import os
import json
import logging
from datetime import datetime, timezone
from flask import Flask, has_request_context
from finanzas.services.request_context import elapsed_ms, get_request_context, get_request_id


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def __init__(self, json_enabled: bool = True):
        super().__init__()
        self.json_enabled = json_enabled

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON or plain text."""
        if not self.json_enabled:
            return super().format(record)

        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if has_request_context():
            log_entry.update(get_request_context())

        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class StructuredLogger:
    """Structured logger with request context integration."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log_with_context(self, level: int, message: str, exc_info=None, **kwargs):
        """Log message with additional context."""
        extra_fields = kwargs.copy()

        if 'request_id' not in extra_fields and has_request_context():
            extra_fields['request_id'] = get_request_id()

        self.logger.log(level, message, exc_info=exc_info, extra={'extra_fields': extra_fields})

    def debug(self, message: str, **kwargs):
        self._log_with_context(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log_with_context(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log_with_context(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log_with_context(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs):
        self._log_with_context(logging.CRITICAL, message, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log an error with the active exception's traceback."""
        self._log_with_context(logging.ERROR, message, exc_info=True, **kwargs)

    # Convenience methods for common log types
    def log_request_start(self, method: str, path: str, **kwargs):
        self.info(
            f"Request started: {method} {path}",
            event_type='request_start',
            method=method,
            path=path,
            **kwargs
        )

    def log_request_end(self, method: str, path: str, status_code: int, duration_ms: float, **kwargs):
        self.info(
            f"Request completed: {method} {path} - {status_code} ({duration_ms}ms)",
            event_type='request_end',
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
            **kwargs
        )

    def log_auth_event(self, event: str, success: bool, **kwargs):
        """Log authentication event."""
        level = logging.INFO if success else logging.WARNING
        self._log_with_context(
            level,
            f"Authentication {event}: {'success' if success else 'failure'}",
            event_type='auth_event',
            auth_event=event,
            success=success,
            **kwargs
        )

    def log_webhook_event(self, provider: str, event: str, outcome: str, **kwargs):
        """Log the outcome of one webhook delivery."""
        level = logging.WARNING if outcome in ('rejected', 'error', 'unmapped') else logging.INFO
        self._log_with_context(
            level,
            f"Webhook {provider} {event}: {outcome}",
            event_type='webhook',
            provider=provider,
            webhook_event=event,
            outcome=outcome,
            **kwargs
        )

    def log_subscription_gate(self, user_id: str, allowed: bool, source: str = None, **kwargs):
        """Log a subscription gate decision."""
        level = logging.DEBUG if allowed else logging.INFO
        self._log_with_context(
            level,
            f"Subscription gate {'allowed' if allowed else 'denied'} for user {user_id}",
            event_type='subscription_gate',
            user_id=user_id,
            allowed=allowed,
            source=source,
            **kwargs
        )

    def log_rate_limit_event(self, scope: str, limit_exceeded: bool, **kwargs):
        """Log rate limiting event."""
        level = logging.WARNING if limit_exceeded else logging.DEBUG
        self._log_with_context(
            level,
            f"Rate limit {'exceeded' if limit_exceeded else 'checked'} for scope: {scope}",
            event_type='rate_limit',
            scope=scope,
            limit_exceeded=limit_exceeded,
            **kwargs
        )


def get_logger(name: str) -> StructuredLogger:
    """Get structured logger instance."""
    return StructuredLogger(name)


def configure_logging(app: Flask):
    """Configure structured logging for Flask application."""
    json_enabled = os.environ.get('FINANZAS_LOG_JSON', 'true').lower() == 'true'
    log_level = app.config.get('LOG_LEVEL') or os.environ.get('LOG_LEVEL', 'INFO').upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(StructuredFormatter(json_enabled=json_enabled))
    root_logger.addHandler(console_handler)

    app.logger.setLevel(getattr(logging, log_level, logging.INFO))

    loggers_to_configure = [
        'finanzas.auth',
        'finanzas.subscription',
        'finanzas.webhooks',
        'finanzas.rate_limit',
        'finanzas.budget',
    ]

    for logger_name in loggers_to_configure:
        logging.getLogger(logger_name).setLevel(getattr(logging, log_level, logging.INFO))

    get_logger('finanzas.config').info(
        "Logging configured",
        json_enabled=json_enabled,
        log_level=log_level,
        loggers_configured=loggers_to_configure
    )


class LoggingMiddleware:
    """Middleware for automatic request/response logging."""

    QUIET_PATHS = ('/health', '/healthz', '/readyz', '/metrics')

    def __init__(self, app: Flask):
        self.app = app
        self.logger = get_logger('finanzas.requests')

        app.before_request(self._before_request)
        app.after_request(self._after_request)

    def _before_request(self):
        from flask import request

        # Skip logging for health checks and metrics to reduce noise
        if request.path in self.QUIET_PATHS:
            return

        self.logger.log_request_start(
            method=request.method,
            path=request.path,
            remote_addr=request.remote_addr,
            user_agent=request.headers.get('User-Agent', ''),
            content_length=request.content_length
        )

    def _after_request(self, response):
        from flask import request, g

        if request.path in self.QUIET_PATHS:
            return response

        duration_ms = elapsed_ms() or 0

        auth_context = {}
        user = getattr(g, 'current_user', None)
        if user is not None:
            auth_context['user_id'] = user.id

        self.logger.log_request_end(
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            content_length=response.content_length,
            **auth_context
        )

        return response


def init_logging(app: Flask):
    """Initialize structured logging for Flask application."""
    configure_logging(app)
    LoggingMiddleware(app)

    get_logger('finanzas.startup').info(
        "Application starting",
        app_env=app.config.get('APP_ENV'),
        debug=app.debug,
        testing=app.testing
    )


# Convenience functions for common logging patterns
def log_auth_success(user_id: str, **kwargs):
    get_logger('finanzas.auth').log_auth_event('bearer_verification', success=True, user_id=user_id, **kwargs)


def log_auth_failure(reason: str, **kwargs):
    get_logger('finanzas.auth').log_auth_event('bearer_verification', success=False, failure_reason=reason, **kwargs)


def log_rate_limit_hit(scope: str, **kwargs):
    get_logger('finanzas.rate_limit').log_rate_limit_event(scope=scope, limit_exceeded=True, **kwargs)

