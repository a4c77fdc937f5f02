"""
===============================================================================
CRC CARD — infrastructure/db/instrumentation.py
===============================================================================

Clases:
  - TimedConnection (Proxy)
  - InstrumentedConnectionPool (Facade/Proxy)

Responsabilidades:
  - Medir duración de conn.execute(...) y exportarla como histograma.
  - Loguear statements lentos (sólo el tipo, nunca parámetros: pueden ser RUTs).
  - Healthcheck opcional al adquirir conexión (SELECT 1).

Colaboradores:
  - crosscutting.config (umbral de lentitud, healthcheck)
  - crosscutting.metrics.observe_db_query_duration
===============================================================================
"""

from __future__ import annotations

import time
from typing import Any, ContextManager

from ...crosscutting.logger import logger
from ...crosscutting.metrics import observe_db_query_duration
from .errors import DatabaseConnectionError

_KNOWN_KINDS = frozenset({"SELECT", "INSERT", "UPDATE", "DELETE", "WITH", "SET"})


def statement_kind(sql: Any) -> str:
    """Primera palabra del statement, acotada a un set conocido."""
    words = str(sql).split(None, 1)
    kind = words[0].upper() if words else ""
    return kind if kind in _KNOWN_KINDS else "OTHER"


class TimedConnection:
    """Proxy de conexión: sólo envuelve execute(); el resto se delega."""

    def __init__(self, inner_conn, *, slow_query_seconds: float) -> None:
        self._conn = inner_conn
        self._slow = slow_query_seconds

    def execute(self, sql, *args, **kwargs):
        start = time.perf_counter()
        try:
            return self._conn.execute(sql, *args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            kind = statement_kind(sql)
            observe_db_query_duration(kind, elapsed)
            if elapsed >= self._slow:
                logger.warning(
                    "DB query lenta",
                    extra={"kind": kind, "seconds": round(elapsed, 4)},
                )

    def __getattr__(self, item: str):
        return getattr(self._conn, item)


class _ConnectionContext(ContextManager[TimedConnection]):
    def __init__(
        self, inner_ctx, *, slow_query_seconds: float, healthcheck: bool
    ) -> None:
        self._inner_ctx = inner_ctx
        self._slow = slow_query_seconds
        self._healthcheck = healthcheck

    def __enter__(self) -> TimedConnection:
        try:
            conn = self._inner_ctx.__enter__()
            if self._healthcheck:
                conn.execute("SELECT 1")
            return TimedConnection(conn, slow_query_seconds=self._slow)
        except Exception as exc:
            raise DatabaseConnectionError(
                "No se pudo adquirir/validar conexión DB."
            ) from exc

    def __exit__(self, exc_type, exc, tb) -> bool:
        return self._inner_ctx.__exit__(exc_type, exc, tb)


class InstrumentedConnectionPool:
    """
    Facade del pool real.

    Los repositorios siguen haciendo `with pool.connection() as conn:` pero
    reciben un TimedConnection.
    """

    def __init__(
        self,
        inner_pool,
        *,
        slow_query_seconds: float | None = None,
        healthcheck: bool | None = None,
    ) -> None:
        if slow_query_seconds is None or healthcheck is None:
            from ...crosscutting.config import get_settings

            settings = get_settings()
            if slow_query_seconds is None:
                slow_query_seconds = settings.db_slow_query_seconds
            if healthcheck is None:
                healthcheck = settings.db_healthcheck_on_acquire
        self._pool = inner_pool
        self._slow_seconds = float(slow_query_seconds)
        self._healthcheck = bool(healthcheck)

    def connection(self, *args, **kwargs) -> ContextManager[TimedConnection]:
        return _ConnectionContext(
            self._pool.connection(*args, **kwargs),
            slow_query_seconds=self._slow_seconds,
            healthcheck=self._healthcheck,
        )

    def __getattr__(self, item: str):
        return getattr(self._pool, item)
