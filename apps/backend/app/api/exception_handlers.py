"""
===============================================================================
TARJETA CRC — app/api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir excepciones de la aplicación a respuestas HTTP RFC7807.
  - Centralizar logging de errores con request_id + error_id.
  - Evitar filtrar detalles internos en errores no controlados.

Patrones aplicados:
  - Exception Mapping (Presentation Layer).
  - Fail-safe: cualquier excepción no tipada -> INTERNAL_ERROR (con logging).

Colaboradores:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, handlers
  - crosscutting.exceptions: ServiceError / DatabaseError / StaleRecordError
  - crosscutting.config.get_settings (para decidir nivel de detalle)
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
    request_validation_handler,
)
from ..crosscutting.exceptions import DatabaseError, ServiceError, StaleRecordError
from ..crosscutting.logger import logger


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


async def _handle_service_error(
    request: Request,
    *,
    exc: ServiceError,
    code: ErrorCode,
    status_code: int,
) -> JSONResponse:
    """Helper común para errores tipados de servicios."""
    request_id = _request_id_from(request)

    logger.error(
        "Error de servicio",
        extra={
            "code": code.value,
            "error_id": exc.error_id,
            "error_message": exc.message,
            "request_id": request_id,
        },
    )

    app_exc = AppHTTPException(
        status_code=status_code,
        code=code,
        detail=exc.message,
        errors=[{"error_id": exc.error_id, "request_id": request_id}],
    )
    return await app_exception_handler(request, app_exc)


async def stale_record_handler(
    request: Request, exc: StaleRecordError
) -> JSONResponse:
    # Carrera perdida que escapó a los reintentos del caso de uso.
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.CONFLICT, status_code=409
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.DATABASE_ERROR, status_code=503
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.INTERNAL_ERROR, status_code=500
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler de último recurso para excepciones no tipadas.

    - Log completo (stacktrace).
    - Respuesta genérica (evita filtrar internos).
    """
    request_id = _request_id_from(request)
    settings = get_settings()

    logger.error(
        "Excepción no controlada",
        exc_info=True,
        extra={"request_id": request_id, "error": str(exc)},
    )

    detail = str(exc) if not settings.is_production() else "Error interno."

    app_exc = AppHTTPException(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=detail,
        errors=[{"request_id": request_id}],
    )
    return await app_exception_handler(request, app_exc)


def register_exception_handlers(app) -> None:
    """
    Registra handlers en la app FastAPI.

    Importante:
      - StaleRecordError antes que DatabaseError (subclase).
      - Exception genérica se registra al final como fallback.
    """
    app.add_exception_handler(StaleRecordError, stale_record_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
