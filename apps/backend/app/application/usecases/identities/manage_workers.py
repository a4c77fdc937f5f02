"""
===============================================================================
USE CASES: Worker provisioning (create / get / update)
===============================================================================

Business Goal:
    Registrar y mantener la identidad operativa que firma.

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) El RUT se normaliza en la entrada; inválido -> VALIDATION_ERROR.
R2) Nombre y cargo obligatorios; un RUT sólo puede tener un Worker -> CONFLICT.
R3) El alta nace no habilitada y sin PIN (se habilita al completar el
    enrolamiento).
R4) Si existe un User con el mismo RUT y sin Worker, se reclama con
    escritura condicional (worker_id null) y se vinculan ambos lados.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID, uuid4

from ....crosscutting.exceptions import StaleRecordError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_identity_sync_failure
from ....domain.entities import User, Worker
from ....domain.repositories import UserRepository, WorkerRepository
from ....identity.rut import normalize_rut
from ..signatures.ledger import Clock, utc_now
from ..signatures.signature_results import (
    conflict_error,
    not_found_error,
    validation_error,
)
from .identity_results import WorkerResult


@dataclass
class CreateWorkerInput:
    rut: str
    first_name: str
    position: str
    last_name: str = ""
    company_id: str = "default"


@dataclass
class UpdateWorkerInput:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None


class CreateWorkerUseCase:
    def __init__(
        self,
        worker_repository: WorkerRepository,
        user_repository: UserRepository,
        clock: Clock = utc_now,
    ) -> None:
        self._workers = worker_repository
        self._users = user_repository
        self._clock = clock

    def execute(self, input_data: CreateWorkerInput) -> WorkerResult:
        rut = normalize_rut(input_data.rut)
        if rut is None:
            return WorkerResult(error=validation_error("RUT inválido"))
        first_name = (input_data.first_name or "").strip()
        position = (input_data.position or "").strip()
        if not first_name or not position:
            return WorkerResult(error=validation_error("Nombre y cargo son requeridos"))
        if self._workers.get_worker_by_rut(rut) is not None:
            return WorkerResult(
                error=conflict_error("Ya existe un trabajador con este RUT")
            )

        now = self._clock()
        worker = self._workers.create_worker(
            Worker(
                id=uuid4(),
                rut=rut,
                first_name=first_name,
                last_name=(input_data.last_name or "").strip(),
                position=position,
                company_id=input_data.company_id,
                enabled=False,
                created_at=now,
                updated_at=now,
            )
        )

        user = self._users.get_user_by_rut(rut)
        linked = False
        if user is not None and user.worker_id is None:
            linked_worker = self._link_user(worker, user)
            if linked_worker is not None:
                worker, linked = linked_worker, True

        logger.info(
            "Trabajador registrado",
            extra={
                "worker_id": str(worker.id),
                "user_id": str(worker.user_id) if worker.user_id else None,
            },
        )
        return WorkerResult(worker=worker, linked_user=linked)

    def _link_user(self, worker: Worker, user: User) -> Optional[Worker]:
        try:
            self._users.update_user(
                user.id, changes={"worker_id": worker.id}, expected={"worker_id": None}
            )
        except StaleRecordError:
            logger.info(
                "User ya vinculado por otro proceso; alta sin vínculo",
                extra={"worker_id": str(worker.id), "user_id": str(user.id)},
            )
            return None
        except Exception:
            record_identity_sync_failure("user")
            logger.exception(
                "No se pudo vincular el User al Worker nuevo",
                extra={"worker_id": str(worker.id), "user_id": str(user.id)},
            )
            return None
        return self._workers.update_worker(worker.id, changes={"user_id": user.id})


class GetWorkerUseCase:
    def __init__(self, worker_repository: WorkerRepository) -> None:
        self._workers = worker_repository

    def execute(self, worker_id: UUID) -> WorkerResult:
        worker = self._workers.get_worker(worker_id)
        if worker is None:
            return WorkerResult(error=not_found_error("Trabajador no encontrado"))
        return WorkerResult(worker=worker)

    def execute_by_rut(self, raw_rut: str) -> WorkerResult:
        rut = normalize_rut(raw_rut)
        if rut is None:
            return WorkerResult(error=validation_error("RUT inválido"))
        worker = self._workers.get_worker_by_rut(rut)
        if worker is None:
            return WorkerResult(error=not_found_error("Trabajador no encontrado"))
        return WorkerResult(worker=worker)


class UpdateWorkerUseCase:
    def __init__(self, worker_repository: WorkerRepository) -> None:
        self._workers = worker_repository

    def execute(self, worker_id: UUID, input_data: UpdateWorkerInput) -> WorkerResult:
        changes = {
            name: value.strip()
            for name, value in (
                ("first_name", input_data.first_name),
                ("last_name", input_data.last_name),
                ("position", input_data.position),
            )
            if value is not None
        }
        if not changes:
            return WorkerResult(error=validation_error("No hay campos para actualizar"))
        if changes.get("first_name") == "" or changes.get("position") == "":
            return WorkerResult(error=validation_error("Nombre y cargo son requeridos"))

        updated = self._workers.update_worker(worker_id, changes=changes)
        if updated is None:
            return WorkerResult(error=not_found_error("Trabajador no encontrado"))
        logger.info(
            "Trabajador actualizado",
            extra={"worker_id": str(worker_id), "fields": sorted(changes)},
        )
        return WorkerResult(worker=updated)
