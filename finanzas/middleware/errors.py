"""
Error handling middleware.

Renders every failure as the standard error envelope. The session is
rolled back before anything is rendered so a failed request never leaks a
half-applied unit of work into the next one.
"""
import traceback

from flask import current_app
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from finanzas.api.envelope import ApiError, error_response
from finanzas.database import db
from finanzas.services.structured_logging import get_logger

logger = get_logger(__name__)

HTTP_STATUS_CODES = {
    400: ("INVALID_REQUEST", "Solicitud inválida. Verifica el formato JSON."),
    401: ("UNAUTHORIZED", None),
    403: ("FORBIDDEN", None),
    404: ("NOT_FOUND", "Ruta no encontrada"),
    405: ("INVALID_REQUEST", "Método no permitido"),
    413: ("INVALID_REQUEST", "El cuerpo de la solicitud es demasiado grande"),
    429: ("RATE_LIMIT", None),
    503: ("SERVICE_UNAVAILABLE", None),
}

# pydantic error type -> Spanish message template (formatted with the error ctx)
VALIDATION_MESSAGES = {
    "missing": "es requerido",
    "greater_than": "debe ser mayor a {gt}",
    "greater_than_equal": "debe ser mayor o igual a {ge}",
    "less_than": "debe ser menor a {lt}",
    "less_than_equal": "debe ser menor o igual a {le}",
    "string_too_short": "debe tener al menos {min_length} caracteres",
    "string_too_long": "no puede superar {max_length} caracteres",
    "string_type": "debe ser texto",
    "literal_error": "debe ser uno de: {expected}",
    "date_parsing": "debe ser una fecha válida (AAAA-MM-DD)",
    "date_from_datetime_parsing": "debe ser una fecha válida (AAAA-MM-DD)",
    "date_type": "debe ser una fecha válida (AAAA-MM-DD)",
    "decimal_parsing": "debe ser un número válido",
    "decimal_type": "debe ser un número válido",
    "int_parsing": "debe ser un número entero",
    "int_type": "debe ser un número entero",
    "list_type": "debe ser una lista",
    "model_type": "debe ser un objeto",
}


def _rollback():
    try:
        db.session.rollback()
    except SQLAlchemyError as e:
        logger.warning(f"Session rollback failed: {e}")


def _field_message(err) -> str:
    field = ".".join(str(part) for part in err.get("loc", ())) or "body"
    template = VALIDATION_MESSAGES.get(err.get("type"))
    if template:
        try:
            return f"{field}: {template.format(**err.get('ctx', {}))}"
        except (KeyError, IndexError):
            pass
    message = err.get("msg", "")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{field}: {message}"


def format_validation_error(exc: ValidationError) -> str:
    """One ``field: problem`` entry per failing field, joined with ``; ``."""
    return "; ".join(_field_message(err) for err in exc.errors())


def register_error_handlers(app):
    """Register envelope-rendering error handlers on ``app``."""

    @app.errorhandler(ApiError)
    def handle_api_error(e):
        _rollback()
        if e.status_code >= 500:
            logger.error(f"{e.code}: {e.message}")
        return error_response(e.code, e.message)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        _rollback()
        return error_response("VALIDATION_ERROR", format_validation_error(e))

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        if e.code is not None and e.code < 400:
            return e  # redirects
        _rollback()
        code, message = HTTP_STATUS_CODES.get(
            e.code, ("INVALID_REQUEST" if (e.code or 500) < 500 else "INTERNAL_ERROR", None))
        return error_response(code, message)

    @app.errorhandler(OperationalError)
    def handle_operational_error(e):
        """Database unreachable, connection dropped, missing table..."""
        _rollback()
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.error(f"Database operational error: {error_msg}")
        return error_response("SERVICE_UNAVAILABLE")

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        _rollback()
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.warning(f"Database integrity error: {error_msg}")
        lowered = error_msg.lower()
        if 'unique' in lowered or 'duplicate' in lowered:
            return error_response("VALIDATION_ERROR", "El registro ya existe")
        return error_response("INVALID_REQUEST", "Referencia inválida o datos inconsistentes")

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        _rollback()
        logger.exception(f"Unhandled error: {e}")
        if current_app.config.get("IS_PRODUCTION"):
            return error_response("INTERNAL_ERROR")
        return error_response("INTERNAL_ERROR", str(e) or None, stack=traceback.format_exc())
