"""
===============================================================================
TARJETA CRC — error_mapping.py (UseCase Error -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir SignatureError (enrolamiento, ledger, solicitudes) a HTTP RFC7807.
  - Centralizar el mapeo para evitar duplicación en routers.
  - Mantener el dominio libre de HTTP.

Mapeo:
  VALIDATION_ERROR -> 422, NOT_FOUND -> 404, AUTH_ERROR -> 401,
  CONFLICT -> 409, INTERNAL_ERROR -> 500.

Colaboradores:
  - application.usecases.SignatureError / SignatureErrorCode
  - crosscutting.error_responses (factories RFC7807)
===============================================================================
"""

from __future__ import annotations

from typing import NoReturn

from app.application.usecases import SignatureError, SignatureErrorCode
from app.crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    conflict,
    internal_error,
    unauthorized,
    validation_error,
)


def _not_found(message: str) -> AppHTTPException:
    # El mensaje del caso de uso ya nombra el recurso ("Firma no encontrada").
    return AppHTTPException(404, ErrorCode.NOT_FOUND, message)


def raise_signature_error(error: SignatureError) -> NoReturn:
    """Traduce SignatureError -> HTTP (siempre lanza)."""
    if error.code == SignatureErrorCode.VALIDATION_ERROR:
        raise validation_error(error.message)
    if error.code == SignatureErrorCode.NOT_FOUND:
        raise _not_found(error.message)
    if error.code == SignatureErrorCode.AUTH_ERROR:
        raise unauthorized(error.message)
    if error.code == SignatureErrorCode.CONFLICT:
        raise conflict(error.message)
    raise internal_error(error.message)
