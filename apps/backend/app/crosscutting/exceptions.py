# apps/backend/app/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Excepciones tipadas del backend (errores internos)
===============================================================================

Objetivo
--------
Tener excepciones internas coherentes, con:
- error_code estable
- error_id para correlación con logs
- message “humana” (sin filtrar secretos)

Los errores de negocio (PIN incorrecto, transición ilegal, etc.) NO viajan como
excepción: los casos de uso devuelven resultados tipados. Acá viven sólo las
fallas de infraestructura (store caído, timeout), que sí se propagan.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  ServiceError + subclases

Responsabilidades:
  - Estandarizar errores internos que luego se mapean a HTTP
  - Generar error_id para rastreo

Colaboradores:
  - api/exception_handlers.py (mapea a AppHTTPException)
  - infrastructure/repositories/postgres/* (lanzan DatabaseError)
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class ServiceError(Exception):
    """Base para errores internos del sistema (error_code + error_id + message)."""

    error_code: str = "SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


class DatabaseError(ServiceError):
    """Errores de DB (conexión, query, timeout, pool). Seguro reintentar."""

    error_code: str = "DATABASE_ERROR"


class StaleRecordError(DatabaseError):
    """Un update condicional no encontró el estado esperado (carrera perdida)."""

    error_code: str = "STALE_RECORD"
