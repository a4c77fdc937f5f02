"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool de conexiones PostgreSQL (singleton)

Responsabilidades:
  - Inicializar, exponer y cerrar el pool de conexiones.
  - Configurar cada conexión (statement_timeout, zona horaria UTC).
  - Devolver un pool instrumentado (latencia por statement sin tocar repos).

Colaboradores:
  - psycopg_pool.ConnectionPool
  - infrastructure/db/instrumentation.InstrumentedConnectionPool
  - crosscutting.config (timeouts)

Principios:
  - Fail-fast (doble init, uso sin init)
  - Encapsulación (pool global único)
===============================================================================
"""

from __future__ import annotations

import threading
from typing import Optional

from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError
from .instrumentation import InstrumentedConnectionPool

_pool: Optional[InstrumentedConnectionPool] = None
_pool_lock = threading.Lock()


def _configure_connection(conn) -> None:
    """Se ejecuta cada vez que el pool crea una conexión nueva."""
    from ...crosscutting.config import get_settings

    # Los timestamps de firma se comparan/ordenan en UTC.
    conn.execute("SET TIME ZONE 'UTC'")

    timeout_ms = int(get_settings().db_statement_timeout_ms)
    if timeout_ms > 0:
        conn.execute(f"SET statement_timeout = {timeout_ms}")
    conn.commit()


def init_pool(database_url: str, min_size: int, max_size: int):
    """Inicializa el pool (una vez por proceso)."""
    global _pool

    with _pool_lock:
        if _pool is not None:
            raise PoolAlreadyInitializedError("El pool ya fue inicializado.")

        # Lazy import: los tests in-memory no necesitan psycopg_pool cargado.
        from psycopg_pool import ConnectionPool

        logger.info(
            "Inicializando pool DB",
            extra={"min_size": min_size, "max_size": max_size},
        )

        real_pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=_configure_connection,
            open=True,
        )
        _pool = InstrumentedConnectionPool(real_pool)

        logger.info("Pool DB inicializado")
        return _pool


def get_pool():
    """Retorna el pool instrumentado singleton."""
    if _pool is None:
        raise PoolNotInitializedError(
            "Pool no inicializado. Llamar init_pool() primero."
        )
    return _pool


def is_pool_initialized() -> bool:
    return _pool is not None


def close_pool() -> None:
    """Cierra el pool (idempotente)."""
    global _pool

    with _pool_lock:
        if _pool is not None:
            logger.info("Cerrando pool DB")
            try:
                _pool.close()
            finally:
                _pool = None
            logger.info("Pool DB cerrado")
