"""
Response envelope for the Finanzas API.

Every JSON response has one of two shapes:

    {"success": true, "data": ...}
    {"success": false, "error": {"code": "...", "message": "..."}}

Error codes map to a fixed HTTP status. ``ApiError`` can be raised from any
layer during request handling; the registered error handlers render it.
"""

from typing import Any, Optional

from flask import jsonify
from pydantic import BaseModel, ConfigDict, Field

ERROR_STATUS = {
    # Authentication
    "UNAUTHORIZED": 401,
    "INVALID_CREDENTIALS": 401,
    "TOKEN_EXPIRED": 401,
    "EMAIL_NOT_CONFIRMED": 401,
    # Authorization
    "FORBIDDEN": 403,
    "SUBSCRIPTION_REQUIRED": 403,
    "SUBSCRIPTION_INACTIVE": 403,
    # Resources
    "NOT_FOUND": 404,
    # Validation
    "VALIDATION_ERROR": 400,
    "INVALID_REQUEST": 400,
    # Rate limiting
    "RATE_LIMIT": 429,
    # Server
    "INTERNAL_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}

DEFAULT_MESSAGES = {
    "UNAUTHORIZED": "No autorizado. Token inválido o faltante.",
    "INVALID_CREDENTIALS": "Credenciales inválidas.",
    "TOKEN_EXPIRED": "Token expirado. Por favor inicia sesión nuevamente.",
    "EMAIL_NOT_CONFIRMED": "Por favor confirma tu email antes de iniciar sesión.",
    "FORBIDDEN": "No tienes permiso para realizar esta acción.",
    "SUBSCRIPTION_REQUIRED": "Se requiere una suscripción activa.",
    "SUBSCRIPTION_INACTIVE": "Tu suscripción no está activa.",
    "NOT_FOUND": "Recurso no encontrado.",
    "VALIDATION_ERROR": "Error de validación en los datos enviados.",
    "INVALID_REQUEST": "Solicitud inválida.",
    "RATE_LIMIT": "Demasiadas solicitudes. Intenta de nuevo más tarde.",
    "INTERNAL_ERROR": "Error interno del servidor.",
    "SERVICE_UNAVAILABLE": "Servicio temporalmente no disponible.",
}


class ErrorDetail(BaseModel):
    """Error body inside a failed envelope."""
    model_config = ConfigDict(extra='forbid')

    code: str = Field(..., min_length=1)
    message: str
    stack: Optional[str] = None


class Envelope(BaseModel):
    """Uniform response envelope."""
    model_config = ConfigDict(extra='forbid')

    success: bool
    data: Optional[Any] = None
    error: Optional[ErrorDetail] = None

    def minify(self) -> dict:
        """Drop the unused half of the envelope (and an empty stack)."""
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error.model_dump(exclude_none=True)}


class ApiError(Exception):
    """An error with a stable envelope code."""

    def __init__(self, code: str, message: Optional[str] = None):
        if code not in ERROR_STATUS:
            code = "INTERNAL_ERROR"
        self.code = code
        self.message = message or DEFAULT_MESSAGES[code]
        self.status_code = ERROR_STATUS[code]
        super().__init__(self.message)

    def __repr__(self):
        return f"<ApiError {self.code}: {self.message}>"


def success(data: Any = None, status_code: int = 200):
    """Build a success response tuple."""
    return jsonify(Envelope(success=True, data=data).minify()), status_code


def error_response(code: str, message: Optional[str] = None, stack: Optional[str] = None):
    """Build an error response tuple for a known error code."""
    err = ApiError(code, message)
    detail = ErrorDetail(code=err.code, message=err.message, stack=stack)
    body = Envelope(success=False, error=detail).minify()
    return jsonify(body), err.status_code
