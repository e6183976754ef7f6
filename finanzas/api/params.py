"""
Request parsing helpers shared by the route modules.
"""
import uuid
from typing import Optional, Tuple

from flask import request

from finanzas.api.envelope import ApiError
from finanzas.utils.dates import MAX_YEAR, MIN_YEAR


def json_body() -> dict:
    """The request's JSON object; anything else is an INVALID_REQUEST."""
    data = request.get_json(silent=True)
    if data is None:
        if request.get_data(cache=True):
            raise ApiError("INVALID_REQUEST", "JSON inválido en el cuerpo de la solicitud")
        return {}
    if not isinstance(data, dict):
        raise ApiError("INVALID_REQUEST", "El cuerpo debe ser un objeto JSON")
    return data


def validate_uuid(value: str, field: str = "id") -> str:
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ApiError("VALIDATION_ERROR", f"{field} debe ser un UUID válido")
    return str(value)


def int_arg(name: str, default: Optional[int] = None) -> Optional[int]:
    """Integer query arg; missing or non-numeric yields ``default``."""
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def period_args(today) -> Tuple[int, int]:
    """``year`` and ``month`` query args for a monthly report, defaulting to ``today``."""
    year = int_arg("year", today.year)
    month = int_arg("month", today.month)
    if not 1 <= month <= 12:
        raise ApiError("VALIDATION_ERROR", "month debe estar entre 1 y 12")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ApiError("VALIDATION_ERROR", f"year debe estar entre {MIN_YEAR} y {MAX_YEAR}")
    return year, month
