"""
===============================================================================
USE CASE: Set PIN
===============================================================================

Business Goal:
    Configurar o rotar el PIN de una identidad (User o Worker).

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) El PIN nuevo debe pasar validate_pin_strength.
R2) Identidad habilitada con hash existente: current_pin obligatorio y
    debe verificar (rotación). Si aún no está habilitada, se puede
    sobrescribir sin prueba del PIN anterior (bootstrap).
R3) Se guarda hash_pin(new_pin, identity.id).
R4) Si existe identidad vinculada, se le escribe un hash RECALCULADO con su
    propio id (nunca copiado). Best-effort: fallas se loguean y cuentan.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_identity_sync_failure
from ....domain.entities import IdentityKind, User, Worker
from ....domain.repositories import UserRepository, WorkerRepository
from ....identity.credentials import PinCodec, validate_pin_strength
from ..signatures.ledger import Clock, utc_now
from ..signatures.signature_results import (
    auth_error,
    not_found_error,
    validation_error,
)
from .enrollment_results import SetPinResult


class SetPinUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        worker_repository: WorkerRepository,
        codec: PinCodec,
        clock: Clock = utc_now,
    ) -> None:
        self._users = user_repository
        self._workers = worker_repository
        self._codec = codec
        self._clock = clock

    def execute(
        self,
        kind: IdentityKind,
        identity_id: UUID,
        new_pin: str,
        current_pin: Optional[str] = None,
    ) -> SetPinResult:
        check = validate_pin_strength(new_pin)
        if not check.valid:
            return SetPinResult(error=validation_error(check.error or "PIN inválido"))

        identity = self._load(kind, identity_id)
        if identity is None:
            return SetPinResult(error=not_found_error("Identidad no encontrada"))

        if identity.pin_hash and identity.enabled:
            if not current_pin:
                return SetPinResult(
                    error=validation_error("Debe ingresar el PIN actual")
                )
            if not self._codec.verify_pin(current_pin, identity.pin_hash, identity.id):
                return SetPinResult(error=auth_error("PIN incorrecto"))

        now = self._clock()
        changes = {
            "pin_hash": self._codec.hash_pin(new_pin, identity.id),
            "pin_created_at": now,
        }
        if kind == IdentityKind.USER:
            updated = self._users.update_user(identity.id, changes=changes)
        else:
            updated = self._workers.update_worker(identity.id, changes=changes)
        if updated is None:
            return SetPinResult(error=not_found_error("Identidad no encontrada"))

        logger.info(
            "PIN configurado",
            extra={"identity_id": str(identity.id), "kind": kind.value},
        )
        propagated = self._propagate(identity, new_pin, now)
        return SetPinResult(identity_id=identity.id, kind=kind, propagated=propagated)

    def _load(self, kind: IdentityKind, identity_id: UUID) -> User | Worker | None:
        if kind == IdentityKind.USER:
            return self._users.get_user(identity_id)
        return self._workers.get_worker(identity_id)

    def _propagate(
        self, identity: User | Worker, new_pin: str, now: datetime
    ) -> bool:
        """Re-hashea el PIN para la identidad vinculada (si existe)."""
        if isinstance(identity, User):
            linked_id, target = identity.worker_id, "worker"
        else:
            linked_id, target = identity.user_id, "user"
        if linked_id is None:
            return False

        changes = {
            "pin_hash": self._codec.hash_pin(new_pin, linked_id),
            "pin_created_at": now,
        }
        try:
            if target == "worker":
                updated = self._workers.update_worker(linked_id, changes=changes)
            else:
                updated = self._users.update_user(linked_id, changes=changes)
        except Exception:
            record_identity_sync_failure(target)
            logger.exception(
                "No se pudo propagar el PIN a la identidad vinculada",
                extra={"linked_id": str(linked_id), "target": target},
            )
            return False

        if updated is None:
            record_identity_sync_failure(target)
            logger.warning(
                "Vínculo desactualizado: identidad vinculada inexistente",
                extra={"linked_id": str(linked_id), "target": target},
            )
            return False
        return True
