"""
Helpers SQL compartidos por los repositorios Postgres.

- fetchone/fetchall centralizan logging + DatabaseError.
- to_db adapta valores de dominio (Enums, snapshots, dicts) a parámetros psycopg.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable

from psycopg.types.json import Jsonb

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger


def resolve_pool(pool):
    if pool is not None:
        return pool
    from ...db.pool import get_pool

    return get_pool()


def to_db(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return Jsonb(value.to_dict())
    if isinstance(value, (dict, list)):
        return Jsonb(value)
    return value


def fetchone(
    pool,
    *,
    query: str,
    params: Iterable[object],
    log_msg: str,
    log_extra: dict[str, object],
) -> tuple | None:
    try:
        with resolve_pool(pool).connection() as conn:
            return conn.execute(query, tuple(params)).fetchone()
    except Exception as exc:
        logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
        raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc


def fetchall(
    pool,
    *,
    query: str,
    params: Iterable[object] = (),
    log_msg: str,
    log_extra: dict[str, object],
) -> list[tuple]:
    try:
        with resolve_pool(pool).connection() as conn:
            return conn.execute(query, tuple(params)).fetchall()
    except Exception as exc:
        logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
        raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc


def set_clause(changes: dict[str, Any]) -> tuple[str, list[object]]:
    """SET dinámico; las claves ya fueron validadas contra la whitelist."""
    columns = [f"{name} = %s" for name in changes]
    columns.append("updated_at = now()")
    return ", ".join(columns), [to_db(v) for v in changes.values()]


def expected_clause(expected: dict[str, Any]) -> tuple[str, list[object]]:
    """Condiciones NULL-safe (IS NOT DISTINCT FROM) para updates condicionales."""
    if not expected:
        return "", []
    parts = [f" AND {name} IS NOT DISTINCT FROM %s" for name in expected]
    return "".join(parts), [to_db(v) for v in expected.values()]
