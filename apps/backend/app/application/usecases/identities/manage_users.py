"""
===============================================================================
USE CASES: User provisioning (create / get / update / reset password)
===============================================================================

Business Goal:
    Administrar las identidades de autenticación: alta con contraseña
    temporal, consulta por id o RUT, edición de perfil y reseteo de
    contraseña.

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) El RUT se normaliza en la entrada; inválido -> VALIDATION_ERROR.
R2) Un RUT sólo puede tener un User -> CONFLICT.
R3) El alta nace pending, no habilitada y sin PIN; la contraseña temporal se
    hashea (Argon2) y se devuelve una única vez.
R4) Si existe un Worker con el mismo RUT y sin User, se vinculan ambos lados.
    El Worker se reclama con escritura condicional (user_id null); si otro
    proceso lo reclamó primero, el User queda sin vínculo.
R5) La edición sólo toca campos de perfil; RUT y rol no se editan acá.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID, uuid4

from ....crosscutting.exceptions import StaleRecordError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_identity_sync_failure
from ....domain.entities import User, UserRole, UserStatus, Worker
from ....domain.repositories import UserRepository, WorkerRepository
from ....identity.credentials import generate_temporary_password
from ....identity.rut import normalize_rut
from ..signatures.ledger import Clock, utc_now
from ..signatures.signature_results import (
    conflict_error,
    not_found_error,
    validation_error,
)
from .identity_results import PasswordResetResult, UserResult

PasswordHasher = Callable[[str], str]


@dataclass
class CreateUserInput:
    rut: str
    first_name: str
    role: UserRole
    last_name: str = ""
    email: Optional[str] = None
    position: Optional[str] = None
    company_id: str = "default"


@dataclass
class UpdateUserInput:
    """None = no cambiar."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    position: Optional[str] = None
    status: Optional[UserStatus] = None


class CreateUserUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        worker_repository: WorkerRepository,
        password_hasher: PasswordHasher,
        clock: Clock = utc_now,
    ) -> None:
        self._users = user_repository
        self._workers = worker_repository
        self._hash_password = password_hasher
        self._clock = clock

    def execute(self, input_data: CreateUserInput) -> UserResult:
        rut = normalize_rut(input_data.rut)
        if rut is None:
            return UserResult(error=validation_error("RUT inválido"))
        first_name = (input_data.first_name or "").strip()
        if not first_name:
            return UserResult(error=validation_error("Nombre es requerido"))
        if self._users.get_user_by_rut(rut) is not None:
            return UserResult(error=conflict_error("Ya existe un usuario con este RUT"))

        now = self._clock()
        temporary_password = generate_temporary_password()
        user = self._users.create_user(
            User(
                id=uuid4(),
                rut=rut,
                first_name=first_name,
                last_name=(input_data.last_name or "").strip(),
                email=input_data.email,
                position=input_data.position,
                company_id=input_data.company_id,
                role=input_data.role,
                password_hash=self._hash_password(temporary_password),
                enabled=False,
                status=UserStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
        )

        worker = self._workers.get_worker_by_rut(rut)
        linked = False
        if worker is not None and worker.user_id is None:
            linked_user = self._link_worker(user, worker)
            if linked_user is not None:
                user, linked = linked_user, True

        logger.info(
            "Usuario creado",
            extra={
                "user_id": str(user.id),
                "role": user.role.value,
                "worker_id": str(user.worker_id) if user.worker_id else None,
            },
        )
        return UserResult(
            user=user, temporary_password=temporary_password, linked_worker=linked
        )

    def _link_worker(self, user: User, worker: Worker) -> Optional[User]:
        try:
            self._workers.update_worker(
                worker.id, changes={"user_id": user.id}, expected={"user_id": None}
            )
        except StaleRecordError:
            logger.info(
                "Worker reclamado por otro User; alta sin vínculo",
                extra={"user_id": str(user.id), "worker_id": str(worker.id)},
            )
            return None
        except Exception:
            record_identity_sync_failure("worker")
            logger.exception(
                "No se pudo vincular el Worker al User nuevo",
                extra={"user_id": str(user.id), "worker_id": str(worker.id)},
            )
            return None
        return self._users.update_user(user.id, changes={"worker_id": worker.id})


class GetUserUseCase:
    def __init__(self, user_repository: UserRepository) -> None:
        self._users = user_repository

    def execute(self, user_id: UUID) -> UserResult:
        user = self._users.get_user(user_id)
        if user is None:
            return UserResult(error=not_found_error("Usuario no encontrado"))
        return UserResult(user=user)

    def execute_by_rut(self, raw_rut: str) -> UserResult:
        rut = normalize_rut(raw_rut)
        if rut is None:
            return UserResult(error=validation_error("RUT inválido"))
        user = self._users.get_user_by_rut(rut)
        if user is None:
            return UserResult(error=not_found_error("Usuario no encontrado"))
        return UserResult(user=user)


class UpdateUserUseCase:
    def __init__(self, user_repository: UserRepository) -> None:
        self._users = user_repository

    def execute(self, user_id: UUID, input_data: UpdateUserInput) -> UserResult:
        changes = {
            name: value
            for name, value in (
                ("first_name", input_data.first_name),
                ("last_name", input_data.last_name),
                ("email", input_data.email),
                ("position", input_data.position),
                ("status", input_data.status),
            )
            if value is not None
        }
        if not changes:
            return UserResult(error=validation_error("No hay campos para actualizar"))
        if "first_name" in changes:
            changes["first_name"] = changes["first_name"].strip()
            if not changes["first_name"]:
                return UserResult(error=validation_error("Nombre es requerido"))

        updated = self._users.update_user(user_id, changes=changes)
        if updated is None:
            return UserResult(error=not_found_error("Usuario no encontrado"))
        logger.info(
            "Usuario actualizado",
            extra={"user_id": str(user_id), "fields": sorted(changes)},
        )
        return UserResult(user=updated)


class ResetPasswordUseCase:
    """Reemplaza la contraseña por una temporal nueva (devuelta una vez)."""

    def __init__(
        self, user_repository: UserRepository, password_hasher: PasswordHasher
    ) -> None:
        self._users = user_repository
        self._hash_password = password_hasher

    def execute(self, user_id: UUID) -> PasswordResetResult:
        temporary_password = generate_temporary_password()
        updated = self._users.update_user(
            user_id, changes={"password_hash": self._hash_password(temporary_password)}
        )
        if updated is None:
            return PasswordResetResult(error=not_found_error("Usuario no encontrado"))
        logger.info("Contraseña reseteada", extra={"user_id": str(user_id)})
        return PasswordResetResult(
            user_id=user_id, temporary_password=temporary_password
        )
