"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/identities.py
============================================================
Classes: InMemoryUserRepository, InMemoryWorkerRepository

Responsibilities:
  - Almacenar Users y Workers en memoria (tests / local dev).
  - Mantener un índice RUT canónico -> id (lookup O(1), sin scans).
  - Implementar updates parciales condicionales (expected) con la misma
    semántica que el UPDATE ... WHERE de Postgres.

Collaborators:
  - domain.entities.User / Worker
  - domain.repositories.UserRepository / WorkerRepository (contratos)
  - in_memory._conditional (whitelist + expected + copias)

Constraints / Notes:
  - Thread-safe: acceso protegido por Lock.
  - Copias profundas al leer y al escribir: el caller nunca comparte
    referencias con el "store".
  - RUT duplicado al crear -> DatabaseError (equivalente al índice único).
============================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import User, Worker
from ....domain.repositories import (
    USER_UPDATABLE_FIELDS,
    WORKER_UPDATABLE_FIELDS,
    UserRepository,
    WorkerRepository,
)
from ._conditional import apply_changes, check_fields, snapshot


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._users: Dict[UUID, User] = {}
        self._by_rut: Dict[str, UUID] = {}

    def get_user(self, user_id: UUID) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return snapshot(user) if user else None

    def get_user_by_rut(self, rut: str) -> Optional[User]:
        with self._lock:
            user_id = self._by_rut.get(rut)
            return snapshot(self._users[user_id]) if user_id else None

    def create_user(self, user: User) -> User:
        with self._lock:
            if user.rut in self._by_rut:
                raise DatabaseError(f"Ya existe un usuario con RUT {user.rut}")
            now = _now()
            stored = snapshot(user)
            stored.created_at = stored.created_at or now
            stored.updated_at = now
            self._users[stored.id] = stored
            self._by_rut[stored.rut] = stored.id
            return snapshot(stored)

    def update_user(
        self,
        user_id: UUID,
        *,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Optional[User]:
        check_fields(changes, USER_UPDATABLE_FIELDS)
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            updated = apply_changes(
                current,
                changes=snapshot(dict(changes)),
                expected=expected,
                allowed=USER_UPDATABLE_FIELDS,
                now=_now(),
            )
            self._users[user_id] = updated
            return snapshot(updated)

    def list_users(self) -> list[User]:
        """Helper de tests/admin: orden estable por created_at."""
        with self._lock:
            users = [snapshot(u) for u in self._users.values()]
        return sorted(users, key=lambda u: (u.created_at or _now(), str(u.id)))


class InMemoryWorkerRepository(WorkerRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._workers: Dict[UUID, Worker] = {}
        self._by_rut: Dict[str, UUID] = {}

    def get_worker(self, worker_id: UUID) -> Optional[Worker]:
        with self._lock:
            worker = self._workers.get(worker_id)
            return snapshot(worker) if worker else None

    def get_worker_by_rut(self, rut: str) -> Optional[Worker]:
        with self._lock:
            worker_id = self._by_rut.get(rut)
            return snapshot(self._workers[worker_id]) if worker_id else None

    def create_worker(self, worker: Worker) -> Worker:
        with self._lock:
            if worker.rut in self._by_rut:
                raise DatabaseError(f"Ya existe un trabajador con RUT {worker.rut}")
            now = _now()
            stored = snapshot(worker)
            stored.created_at = stored.created_at or now
            stored.updated_at = now
            self._workers[stored.id] = stored
            self._by_rut[stored.rut] = stored.id
            return snapshot(stored)

    def update_worker(
        self,
        worker_id: UUID,
        *,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Optional[Worker]:
        check_fields(changes, WORKER_UPDATABLE_FIELDS)
        with self._lock:
            current = self._workers.get(worker_id)
            if current is None:
                return None
            updated = apply_changes(
                current,
                changes=snapshot(dict(changes)),
                expected=expected,
                allowed=WORKER_UPDATABLE_FIELDS,
                now=_now(),
            )
            self._workers[worker_id] = updated
            return snapshot(updated)
