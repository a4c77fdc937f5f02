"""
===============================================================================
USE CASE: Complete Enrollment (with self-healing resynchronization)
===============================================================================

Business Goal:
    Atestiguar el PIN de un User con una firma de enrolamiento y dejar el par
    (User, Worker) habilitado para firmar.

Why (Context / Intención):
    - User y Worker son dos registros actualizables por separado: el vínculo
      puede faltar o quedar desactualizado.
    - Un User ya habilitado NO se rechaza automáticamente: si su Worker falta
      o no está habilitado, se repara el par (resync).
    - La escritura del lado Worker es best-effort; la del User es la autoritativa.
      Una llamada posterior repara lo que haya fallado.

-------------------------------------------------------------------------------
FLOW
-------------------------------------------------------------------------------
1) User inexistente -> NOT_FOUND.
2) User sin PIN -> VALIDATION_ERROR.
3) PIN no verifica contra el hash del User -> AUTH_ERROR.
4) Resolver Worker: (a) vínculo existente, (b) mismo RUT canónico,
   (c) crear uno nuevo desde el perfil del User (no habilitado).
5) User habilitado y Worker habilitado -> CONFLICT("already enrolled").
6) Escribir firma de enrolamiento.
7) Habilitar User (+ snapshot; worker_id se escribe si es null o está
   desactualizado, condicionado al valor leído).
8) Best-effort: habilitar Worker con PIN re-hasheado para su id.
9) Best-effort: notificar.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from ....crosscutting.exceptions import StaleRecordError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import (
    record_enrollment,
    record_identity_sync_failure,
    record_notification_failure,
    record_signature_created,
)
from ....domain.entities import (
    EnrollmentSnapshot,
    Signature,
    SignaturePurpose,
    User,
    UserStatus,
    ValidationMethod,
    Worker,
)
from ....domain.repositories import (
    SignatureRepository,
    UserRepository,
    WorkerRepository,
)
from ....domain.services import NotificationSender
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

ENROLLMENT_COMPLETED_TEMPLATE = "enrollment_completed"


class CompleteEnrollmentUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        worker_repository: WorkerRepository,
        signature_repository: SignatureRepository,
        codec: PinCodec,
        notifier: NotificationSender | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._users = user_repository
        self._workers = worker_repository
        self._signatures = signature_repository
        self._codec = codec
        self._notifier = notifier
        self._clock = clock

    def execute(
        self,
        user_id: UUID,
        pin: str,
        context: AttestationContext | None = None,
    ) -> EnrollmentResult:
        context = context or AttestationContext()

        user = self._users.get_user(user_id)
        if user is None:
            return EnrollmentResult(error=not_found_error("Usuario no encontrado"))
        if not user.pin_hash:
            return EnrollmentResult(
                error=validation_error("Primero debe configurar su PIN")
            )
        if not self._codec.verify_pin(pin, user.pin_hash, user.id):
            logger.info(
                "Enrolamiento rechazado: PIN incorrecto",
                extra={"user_id": str(user.id)},
            )
            return EnrollmentResult(error=auth_error("PIN incorrecto"))

        now = self._clock()
        worker = self._resolve_worker(user, now)

        if user.enabled and worker is not None and worker.enabled:
            return EnrollmentResult(error=conflict_error("already enrolled"))

        resynced = user.enabled
        if resynced:
            logger.warning(
                "User habilitado con Worker faltante o deshabilitado: resincronizando",
                extra={
                    "user_id": str(user.id),
                    "worker_id": str(worker.id) if worker else None,
                },
            )

        signature = self._signatures.create_signature(
            new_signature(
                codec=self._codec,
                signer_id=worker.id if worker else user.id,
                signer_rut=user.rut,
                signer_name=user.full_name,
                purpose=SignaturePurpose.ENROLLMENT,
                method=ValidationMethod.PIN,
                attested_at=now,
                recorded_at=now,
                context=context,
                user_id=user.id,
                reference_id=str(user.id),
                reference_type="user",
                metadata={"resync": resynced},
                company_id=user.company_id,
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
        self._enable_user(user, worker, snapshot, now)
        if worker is not None:
            self._enable_worker(worker, user, pin, snapshot, now)

        record_enrollment("resync" if resynced else "fresh")
        logger.info(
            "Enrolamiento completado",
            extra={
                "user_id": str(user.id),
                "worker_id": str(worker.id) if worker else None,
                "signature_token": signature.token,
                "resynced": resynced,
            },
        )
        self._notify(user, signature)

        return EnrollmentResult(
            user_id=user.id,
            worker_id=worker.id if worker else None,
            enabled=True,
            signature=signature,
            resynced=resynced,
        )

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _resolve_worker(self, user: User, now: datetime) -> Optional[Worker]:
        """(a) vínculo, (b) RUT canónico, (c) alta desde el perfil del User."""
        try:
            if user.worker_id is not None:
                linked = self._workers.get_worker(user.worker_id)
                if linked is not None:
                    return linked
                logger.warning(
                    "Vínculo worker_id desactualizado",
                    extra={"user_id": str(user.id), "worker_id": str(user.worker_id)},
                )

            by_rut = self._workers.get_worker_by_rut(user.rut)
            if by_rut is not None:
                return by_rut

            created = self._workers.create_worker(
                Worker(
                    id=uuid4(),
                    rut=user.rut,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    position=user.position,
                    company_id=user.company_id,
                    enabled=False,
                    user_id=user.id,
                    created_at=now,
                    updated_at=now,
                )
            )
            logger.info(
                "Worker creado desde perfil de User",
                extra={"user_id": str(user.id), "worker_id": str(created.id)},
            )
            return created
        except Exception:
            record_identity_sync_failure("worker")
            logger.exception(
                "No se pudo resolver el Worker del User",
                extra={"user_id": str(user.id)},
            )
            return None

    def _enable_user(
        self,
        user: User,
        worker: Optional[Worker],
        snapshot: EnrollmentSnapshot,
        now: datetime,
    ) -> None:
        changes = {
            "enabled": True,
            "status": UserStatus.ACTIVE,
            "enrollment": snapshot,
        }
        if worker is None or user.worker_id == worker.id:
            self._users.update_user(user.id, changes=changes)
            return

        # Vínculo nulo o apuntando a un Worker inexistente: se reescribe sólo si
        # nadie lo cambió desde que se leyó (escritura condicional).
        try:
            self._users.update_user(
                user.id,
                changes={**changes, "worker_id": worker.id},
                expected={"worker_id": user.worker_id},
            )
        except StaleRecordError:
            logger.info(
                "worker_id ya vinculado por otro proceso; se conserva",
                extra={"user_id": str(user.id)},
            )
            self._users.update_user(user.id, changes=changes)

    def _enable_worker(
        self,
        worker: Worker,
        user: User,
        pin: str,
        snapshot: EnrollmentSnapshot,
        now: datetime,
    ) -> None:
        changes = {
            "enabled": True,
            "pin_hash": self._codec.hash_pin(pin, worker.id),
            "pin_created_at": now,
            "enrollment": snapshot,
        }
        if worker.user_id is None:
            changes["user_id"] = user.id
        try:
            updated = self._workers.update_worker(worker.id, changes=changes)
        except Exception:
            record_identity_sync_failure("worker")
            logger.exception(
                "Enrolamiento: no se pudo habilitar el Worker (se reparará en resync)",
                extra={"user_id": str(user.id), "worker_id": str(worker.id)},
            )
            return
        if updated is None:
            record_identity_sync_failure("worker")
            logger.warning(
                "Enrolamiento: Worker desapareció antes de habilitarlo",
                extra={"worker_id": str(worker.id)},
            )

    def _notify(self, user: User, signature: Signature) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.send(
                str(user.id),
                ENROLLMENT_COMPLETED_TEMPLATE,
                {
                    "signature_token": signature.token,
                    "signed_date": signature.signed_date,
                    "signed_time": signature.signed_time,
                },
            )
        except Exception:
            record_notification_failure(ENROLLMENT_COMPLETED_TEMPLATE)
            logger.exception(
                "No se pudo notificar enrolamiento", extra={"user_id": str(user.id)}
            )
