"""
===============================================================================
USE CASE: Complete Worker Enrollment
===============================================================================

Business Goal:
    Habilitar un Worker que configuró su PIN directamente (sin pasar por su
    User), dejando la firma de enrolamiento como evidencia.

-------------------------------------------------------------------------------
FLOW
-------------------------------------------------------------------------------
1) Worker inexistente -> NOT_FOUND.
2) Worker sin PIN -> VALIDATION_ERROR.
3) PIN no verifica contra el hash del Worker -> AUTH_ERROR.
4) Worker ya habilitado -> CONFLICT("already enrolled").
5) Escribir firma de enrolamiento (reference_type "worker").
6) Habilitar Worker (+ snapshot). Esta escritura es la autoritativa.
7) Best-effort: si el User vinculado tiene el mismo PIN y no está
   habilitado, se habilita también (el par queda consistente).
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.logger import logger
from ....crosscutting.metrics import (
    record_enrollment,
    record_identity_sync_failure,
    record_signature_created,
)
from ....domain.entities import (
    EnrollmentSnapshot,
    SignaturePurpose,
    UserStatus,
    ValidationMethod,
    Worker,
)
from ....domain.repositories import (
    SignatureRepository,
    UserRepository,
    WorkerRepository,
)
from ....domain.value_objects import AttestationContext
from ....identity.credentials import PinCodec
from ..signatures.ledger import Clock, new_signature, utc_now
from ..signatures.signature_results import (
    auth_error,
    conflict_error,
    not_found_error,
    validation_error,
)
from .enrollment_results import EnrollmentResult


class CompleteWorkerEnrollmentUseCase:
    def __init__(
        self,
        worker_repository: WorkerRepository,
        user_repository: UserRepository,
        signature_repository: SignatureRepository,
        codec: PinCodec,
        clock: Clock = utc_now,
    ) -> None:
        self._workers = worker_repository
        self._users = user_repository
        self._signatures = signature_repository
        self._codec = codec
        self._clock = clock

    def execute(
        self,
        worker_id: UUID,
        pin: str,
        context: AttestationContext | None = None,
    ) -> EnrollmentResult:
        context = context or AttestationContext()

        worker = self._workers.get_worker(worker_id)
        if worker is None:
            return EnrollmentResult(error=not_found_error("Trabajador no encontrado"))
        if not worker.pin_hash:
            return EnrollmentResult(
                error=validation_error("El trabajador debe configurar un PIN primero")
            )
        if not self._codec.verify_pin(pin, worker.pin_hash, worker.id):
            logger.info(
                "Enrolamiento de Worker rechazado: PIN incorrecto",
                extra={"worker_id": str(worker.id)},
            )
            return EnrollmentResult(error=auth_error("PIN incorrecto"))
        if worker.enabled:
            return EnrollmentResult(error=conflict_error("already enrolled"))

        now = self._clock()
        signature = self._signatures.create_signature(
            new_signature(
                codec=self._codec,
                signer_id=worker.id,
                signer_rut=worker.rut,
                signer_name=worker.full_name,
                purpose=SignaturePurpose.ENROLLMENT,
                method=ValidationMethod.PIN,
                attested_at=now,
                recorded_at=now,
                context=context,
                user_id=worker.user_id,
                reference_id=str(worker.id),
                reference_type="worker",
                company_id=worker.company_id,
            )
        )
        record_signature_created(
            SignaturePurpose.ENROLLMENT.value, ValidationMethod.PIN.value
        )

        snapshot = EnrollmentSnapshot(
            token=signature.token,
            signed_date=signature.signed_date,
            signed_time=signature.signed_time,
            timestamp=signature.timestamp,
            validation_method=signature.validation_method,
            ip_address=signature.ip_address,
        )
        self._workers.update_worker(
            worker.id, changes={"enabled": True, "enrollment": snapshot}
        )
        user_enabled = self._sync_user(worker, pin, snapshot)

        record_enrollment("worker")
        logger.info(
            "Enrolamiento de Worker completado",
            extra={
                "worker_id": str(worker.id),
                "user_id": str(worker.user_id) if worker.user_id else None,
                "signature_token": signature.token,
                "user_enabled": user_enabled,
            },
        )
        return EnrollmentResult(
            user_id=worker.user_id,
            worker_id=worker.id,
            enabled=True,
            signature=signature,
        )

    def _sync_user(
        self,
        worker: Worker,
        pin: str,
        snapshot: EnrollmentSnapshot,
    ) -> bool:
        if worker.user_id is None:
            return False
        try:
            user = self._users.get_user(worker.user_id)
            if user is None or user.enabled:
                return False
            # Sólo si el User ya atestigua el mismo PIN; si no, su propio
            # enrolamiento lo habilitará.
            if not self._codec.verify_pin(pin, user.pin_hash, user.id):
                return False
            self._users.update_user(
                user.id,
                changes={
                    "enabled": True,
                    "status": UserStatus.ACTIVE,
                    "enrollment": snapshot,
                },
            )
            return True
        except Exception:
            record_identity_sync_failure("user")
            logger.exception(
                "Enrolamiento de Worker: no se pudo sincronizar el User",
                extra={"worker_id": str(worker.id), "user_id": str(worker.user_id)},
            )
            return False
