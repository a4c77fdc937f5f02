"""
===============================================================================
USE CASE: Create Signature (interactive PIN signing)
===============================================================================

Business Goal:
    Registrar el consentimiento de una identidad habilitada sobre un documento,
    actividad o capacitación, verificando su PIN.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    CreateSignatureUseCase

Responsibilities:
    - Rechazar el propósito "enrollment" (va por CompleteEnrollmentUseCase).
    - Resolver la identidad firmante (Worker; si no existe, User sin Worker).
    - Exigir identidad habilitada con PIN configurado y PIN correcto.
    - Validar la solicitud asociada (si hay): existe, abierta, firmante requerido,
      aún no firmó.
    - Escribir la firma inmutable y actualizar la proyección de la solicitud.

Collaborators:
    - WorkerRepository / UserRepository
    - SignatureRepository / SignatureRequestRepository
    - PinCodec
    - RecordSignerUseCase (proyección de solicitudes)

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) purpose != enrollment.
R2) Identidad inexistente -> NOT_FOUND.
R3) No habilitada -> AUTH_ERROR("not enrolled").
R4) Sin hash -> VALIDATION_ERROR("no PIN configured").
R5) PIN no verifica contra el id de la identidad -> AUTH_ERROR("PIN incorrecto").
R6) Solicitud: inexistente -> NOT_FOUND; cancelada/expirada -> CONFLICT;
    no es firmante -> AUTH_ERROR; ya firmó -> CONFLICT.
R7) La firma es la fuente de verdad: si la proyección falla, la firma queda.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_signature_created
from ....domain.entities import (
    SignaturePurpose,
    SignatureRequestState,
    User,
    ValidationMethod,
    Worker,
)
from ....domain.repositories import (
    SignatureRepository,
    SignatureRequestRepository,
    UserRepository,
    WorkerRepository,
)
from ....domain.value_objects import AttestationContext
from ....identity.credentials import PinCodec
from .ledger import Clock, new_signature, utc_now
from .signature_results import (
    SignatureResult,
    auth_error,
    conflict_error,
    not_found_error,
    validation_error,
)

if TYPE_CHECKING:
    from ..signature_requests.record_signer import RecordSignerUseCase


@dataclass
class CreateSignatureInput:
    worker_id: UUID
    pin: str
    purpose: SignaturePurpose
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    request_id: Optional[UUID] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    context: AttestationContext = field(default_factory=AttestationContext)


class CreateSignatureUseCase:
    def __init__(
        self,
        worker_repository: WorkerRepository,
        user_repository: UserRepository,
        signature_repository: SignatureRepository,
        request_repository: SignatureRequestRepository,
        codec: PinCodec,
        record_signer: "RecordSignerUseCase | None" = None,
        clock: Clock = utc_now,
    ) -> None:
        self._workers = worker_repository
        self._users = user_repository
        self._signatures = signature_repository
        self._requests = request_repository
        self._codec = codec
        self._record_signer = record_signer
        self._clock = clock

    def execute(self, input_data: CreateSignatureInput) -> SignatureResult:
        if input_data.purpose == SignaturePurpose.ENROLLMENT:
            return SignatureResult(
                error=validation_error(
                    "El enrolamiento se firma con complete-enrollment"
                )
            )

        signer = self._resolve_signer(input_data.worker_id)
        if signer is None:
            return SignatureResult(error=not_found_error("Trabajador no encontrado"))
        if not signer.enabled:
            return SignatureResult(error=auth_error("not enrolled"))
        if not signer.pin_hash:
            return SignatureResult(error=validation_error("no PIN configured"))
        if not self._codec.verify_pin(input_data.pin, signer.pin_hash, signer.id):
            logger.info(
                "Firma rechazada: PIN incorrecto",
                extra={"signer_id": str(signer.id)},
            )
            return SignatureResult(error=auth_error("PIN incorrecto"))

        if input_data.request_id is not None:
            request_error = self._check_request(input_data.request_id, signer.id)
            if request_error is not None:
                return request_error

        now = self._clock()
        signature = new_signature(
            codec=self._codec,
            signer_id=signer.id,
            signer_rut=signer.rut,
            signer_name=signer.full_name,
            purpose=input_data.purpose,
            method=ValidationMethod.PIN,
            attested_at=now,
            recorded_at=now,
            context=input_data.context,
            user_id=signer.id if isinstance(signer, User) else signer.user_id,
            reference_id=input_data.reference_id,
            reference_type=input_data.reference_type,
            request_id=input_data.request_id,
            metadata=input_data.metadata,
            company_id=signer.company_id,
        )
        signature = self._signatures.create_signature(signature)
        record_signature_created(signature.purpose.value, signature.validation_method.value)
        logger.info(
            "Firma registrada",
            extra={
                "signature_id": str(signature.id),
                "signature_token": signature.token,
                "purpose": signature.purpose.value,
            },
        )

        if input_data.request_id is not None and self._record_signer is not None:
            self._update_request(input_data.request_id, signer.id, signature.id)

        return SignatureResult(signature=signature)

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _resolve_signer(self, identity_id: UUID) -> Worker | User | None:
        worker = self._workers.get_worker(identity_id)
        if worker is not None:
            return worker
        user = self._users.get_user(identity_id)
        if user is None:
            return None
        if user.worker_id is not None:
            linked = self._workers.get_worker(user.worker_id)
            if linked is not None:
                return linked
        # User sin Worker vinculado: firma con su propio id.
        return user

    def _check_request(
        self, request_id: UUID, signer_id: UUID
    ) -> SignatureResult | None:
        request = self._requests.get_request(request_id)
        if request is None:
            return SignatureResult(error=not_found_error("Solicitud no encontrada"))
        if request.state in (
            SignatureRequestState.CANCELLED,
            SignatureRequestState.EXPIRED,
        ):
            return SignatureResult(
                error=conflict_error(f"La solicitud está {request.state.value}")
            )
        entry = request.signer_for(signer_id)
        if entry is None:
            return SignatureResult(
                error=auth_error("No es firmante requerido de la solicitud")
            )
        if entry.signed:
            return SignatureResult(error=conflict_error("Ya firmó esta solicitud"))
        return None

    def _update_request(
        self, request_id: UUID, signer_id: UUID, signature_id: UUID
    ) -> None:
        try:
            result = self._record_signer.execute(request_id, signer_id, signature_id)
        except Exception:
            logger.exception(
                "Firma escrita pero no se pudo actualizar la solicitud",
                extra={"request_id": str(request_id)},
            )
            return
        if result.error is not None:
            logger.warning(
                "Firma escrita pero la solicitud no se actualizó",
                extra={"request_id": str(request_id), "reason": result.error.message},
            )
