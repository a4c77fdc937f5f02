"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/identities.py
============================================================
Classes: PostgresUserRepository, PostgresWorkerRepository

Responsibilities:
  - Cargar/crear Users y Workers por id y por RUT canónico (índice único).
  - Updates parciales con whitelist de columnas y condiciones `expected`
    (UPDATE ... WHERE col IS NOT DISTINCT FROM %s).
  - Mapear filas -> entidades de dominio, validando Enums persistidos.

Collaborators:
  - psycopg_pool.ConnectionPool (vía db.pool.get_pool o inyectado)
  - postgres._sql (fetch helpers + adaptación de parámetros)
  - crosscutting.exceptions.DatabaseError / StaleRecordError

Constraints / Notes:
  - Retorna None cuando el registro no existe.
  - SQL parametrizado siempre; los nombres de columna del SET vienen de la
    whitelist del dominio, nunca del input.
  - Si el UPDATE condicional no afecta filas pero el registro existe ->
    StaleRecordError.
============================================================
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import UUID

from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError, StaleRecordError
from ....domain.entities import EnrollmentSnapshot, User, UserRole, UserStatus, Worker
from ....domain.repositories import USER_UPDATABLE_FIELDS, WORKER_UPDATABLE_FIELDS
from ._sql import expected_clause, fetchone, set_clause, to_db

_USER_COLUMNS = (
    "id, rut, first_name, last_name, email, position, company_id, role, "
    "password_hash, pin_hash, pin_created_at, enabled, worker_id, status, "
    "enrollment, created_at, updated_at"
)

_WORKER_COLUMNS = (
    "id, rut, first_name, last_name, position, company_id, pin_hash, "
    "pin_created_at, enabled, user_id, enrollment, created_at, updated_at"
)


def _snapshot(raw: Any) -> Optional[EnrollmentSnapshot]:
    return EnrollmentSnapshot.from_dict(raw) if raw else None


def _row_to_user(row: tuple) -> User:
    try:
        role = UserRole(row[7])
        status = UserStatus(row[13])
    except ValueError as exc:
        raise DatabaseError(
            f"Invalid user role/status in database: {row[7]}/{row[13]}"
        ) from exc

    return User(
        id=row[0],
        rut=row[1],
        first_name=row[2],
        last_name=row[3] or "",
        email=row[4],
        position=row[5],
        company_id=row[6],
        role=role,
        password_hash=row[8],
        pin_hash=row[9],
        pin_created_at=row[10],
        enabled=row[11],
        worker_id=row[12],
        status=status,
        enrollment=_snapshot(row[14]),
        created_at=row[15],
        updated_at=row[16],
    )


def _row_to_worker(row: tuple) -> Worker:
    return Worker(
        id=row[0],
        rut=row[1],
        first_name=row[2],
        last_name=row[3] or "",
        position=row[4],
        company_id=row[5],
        pin_hash=row[6],
        pin_created_at=row[7],
        enabled=row[8],
        user_id=row[9],
        enrollment=_snapshot(row[10]),
        created_at=row[11],
        updated_at=row[12],
    )


def _check_fields(changes: Mapping[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Campos no actualizables: {sorted(unknown)}")


class PostgresUserRepository:
    def __init__(self, pool: ConnectionPool | None = None) -> None:
        # Pool inyectable (tests de integración); None = pool global.
        self._pool = pool

    def _get_one(self, where: str, value: object, log_msg: str) -> Optional[User]:
        row = fetchone(
            self._pool,
            query=f"SELECT {_USER_COLUMNS} FROM users WHERE {where} = %s",
            params=(value,),
            log_msg=log_msg,
            log_extra={"lookup": where},
        )
        return _row_to_user(row) if row else None

    def get_user(self, user_id: UUID) -> Optional[User]:
        return self._get_one("id", user_id, "PostgresUserRepository: get_user failed")

    def get_user_by_rut(self, rut: str) -> Optional[User]:
        return self._get_one(
            "rut", rut, "PostgresUserRepository: get_user_by_rut failed"
        )

    def create_user(self, user: User) -> User:
        row = fetchone(
            self._pool,
            query=f"""
                INSERT INTO users (
                    id, rut, first_name, last_name, email, position, company_id,
                    role, password_hash, pin_hash, pin_created_at, enabled,
                    worker_id, status, enrollment
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {_USER_COLUMNS}
            """,
            params=(
                user.id,
                user.rut,
                user.first_name,
                user.last_name,
                user.email,
                user.position,
                user.company_id,
                to_db(user.role),
                user.password_hash,
                user.pin_hash,
                user.pin_created_at,
                user.enabled,
                user.worker_id,
                to_db(user.status),
                to_db(user.enrollment),
            ),
            log_msg="PostgresUserRepository: create_user failed",
            log_extra={"user_id": str(user.id)},
        )
        if not row:
            raise DatabaseError("PostgresUserRepository: create_user returned no row")
        return _row_to_user(row)

    def update_user(
        self,
        user_id: UUID,
        *,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Optional[User]:
        _check_fields(changes, USER_UPDATABLE_FIELDS)
        if not changes:
            return self.get_user(user_id)

        set_sql, set_params = set_clause(dict(changes))
        where_sql, where_params = expected_clause(dict(expected or {}))
        row = fetchone(
            self._pool,
            query=f"""
                UPDATE users
                SET {set_sql}
                WHERE id = %s{where_sql}
                RETURNING {_USER_COLUMNS}
            """,
            params=[*set_params, user_id, *where_params],
            log_msg="PostgresUserRepository: update_user failed",
            log_extra={"user_id": str(user_id), "fields": sorted(changes)},
        )
        if row:
            return _row_to_user(row)
        if expected and self.get_user(user_id) is not None:
            raise StaleRecordError(f"users.{sorted(expected)} cambió concurrentemente")
        return None


class PostgresWorkerRepository:
    def __init__(self, pool: ConnectionPool | None = None) -> None:
        self._pool = pool

    def _get_one(self, where: str, value: object, log_msg: str) -> Optional[Worker]:
        row = fetchone(
            self._pool,
            query=f"SELECT {_WORKER_COLUMNS} FROM workers WHERE {where} = %s",
            params=(value,),
            log_msg=log_msg,
            log_extra={"lookup": where},
        )
        return _row_to_worker(row) if row else None

    def get_worker(self, worker_id: UUID) -> Optional[Worker]:
        return self._get_one(
            "id", worker_id, "PostgresWorkerRepository: get_worker failed"
        )

    def get_worker_by_rut(self, rut: str) -> Optional[Worker]:
        return self._get_one(
            "rut", rut, "PostgresWorkerRepository: get_worker_by_rut failed"
        )

    def create_worker(self, worker: Worker) -> Worker:
        row = fetchone(
            self._pool,
            query=f"""
                INSERT INTO workers (
                    id, rut, first_name, last_name, position, company_id,
                    pin_hash, pin_created_at, enabled, user_id, enrollment
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {_WORKER_COLUMNS}
            """,
            params=(
                worker.id,
                worker.rut,
                worker.first_name,
                worker.last_name,
                worker.position,
                worker.company_id,
                worker.pin_hash,
                worker.pin_created_at,
                worker.enabled,
                worker.user_id,
                to_db(worker.enrollment),
            ),
            log_msg="PostgresWorkerRepository: create_worker failed",
            log_extra={"worker_id": str(worker.id)},
        )
        if not row:
            raise DatabaseError(
                "PostgresWorkerRepository: create_worker returned no row"
            )
        return _row_to_worker(row)

    def update_worker(
        self,
        worker_id: UUID,
        *,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Optional[Worker]:
        _check_fields(changes, WORKER_UPDATABLE_FIELDS)
        if not changes:
            return self.get_worker(worker_id)

        set_sql, set_params = set_clause(dict(changes))
        where_sql, where_params = expected_clause(dict(expected or {}))
        row = fetchone(
            self._pool,
            query=f"""
                UPDATE workers
                SET {set_sql}
                WHERE id = %s{where_sql}
                RETURNING {_WORKER_COLUMNS}
            """,
            params=[*set_params, worker_id, *where_params],
            log_msg="PostgresWorkerRepository: update_worker failed",
            log_extra={"worker_id": str(worker_id), "fields": sorted(changes)},
        )
        if row:
            return _row_to_worker(row)
        if expected and self.get_worker(worker_id) is not None:
            raise StaleRecordError(
                f"workers.{sorted(expected)} cambió concurrentemente"
            )
        return None
