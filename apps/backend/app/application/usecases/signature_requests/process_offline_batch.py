"""
===============================================================================
USE CASE: Process Offline Batch (offline reconciliation)
===============================================================================

Business Goal:
    Reproducir en el servidor las firmas (rut, pin, timestamp) que la app
    recolectó sin conexión, y dejar una solicitud de firma que las agrupe.

Why (Context / Intención):
    - En terreno no siempre hay red: la app guarda las tuplas y las sincroniza
      después. Cada tupla es independiente: una falla no aborta el resto.
    - El resultado SIEMPRE es parcial y estructurado (aceptadas, rechazadas,
      motivo por ítem); cero aceptadas no es un error de la llamada.

-------------------------------------------------------------------------------
PER-ITEM FLOW
-------------------------------------------------------------------------------
1) Normalizar RUT. Inválido -> VALIDATION_ERROR("invalid RUT").
2) Resolver identidad (índice por RUT + caché del lote):
     Worker por RUT -> User por RUT con Worker vinculado -> User sin Worker
     con PIN propio (su id reemplaza al de Worker en la firma).
   Nada -> NOT_FOUND("identity not found").
3) No habilitada -> AUTH_ERROR("not enabled").
4) Sin hash -> VALIDATION_ERROR("no PIN configured").
5) PIN contra el id de la identidad resuelta -> AUTH_ERROR("invalid PIN").
6) Firma PIN-OFFLINE: timestamp del cliente = hora atestiguada,
   hora del servidor = synced_at.
Falla de store en un ítem -> INTERNAL_ERROR sólo para ese ítem.

-------------------------------------------------------------------------------
BATCH RESULT
-------------------------------------------------------------------------------
Solicitud creada con required = ítems intentados, completed = aceptados,
estado derivado con derive_request_state.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_offline_item, record_signature_created
from ....domain.entities import (
    RequestSigner,
    Signature,
    SignaturePurpose,
    SignatureRequest,
    SignatureRequestState,
    SignatureRequestType,
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
from ....domain.value_objects import AttestationContext, OfflineSignatureItem
from ....identity.credentials import PinCodec
from ....identity.rut import normalize_rut
from ..signatures.ledger import Clock, as_utc, new_signature, utc_now
from ..signatures.signature_results import (
    SignatureErrorCode,
    not_found_error,
    validation_error,
)
from .request_results import (
    OfflineBatchResult,
    OfflineItemOutcome,
    derive_request_state,
)

_UNRESOLVED = object()

_TRAINING_REQUEST_TYPES = frozenset(
    {SignatureRequestType.CAPACITACION, SignatureRequestType.INDUCCION}
)


def offline_purpose(request_type: SignatureRequestType) -> SignaturePurpose:
    """Capacitaciones e inducciones firman como training; el resto como activity."""
    if request_type in _TRAINING_REQUEST_TYPES:
        return SignaturePurpose.TRAINING
    return SignaturePurpose.ACTIVITY


@dataclass
class OfflineBatchInput:
    request_type: SignatureRequestType
    title: str
    requester_id: UUID
    items: List[OfflineSignatureItem] = field(default_factory=list)
    description: Optional[str] = None
    location: Optional[str] = None
    created_offline_at: Optional[datetime] = None
    context: AttestationContext = field(default_factory=AttestationContext)


@dataclass(frozen=True)
class _Signer:
    """Identidad firmante resuelta (Worker, o User sin Worker)."""

    id: UUID
    rut: str
    name: str
    position: Optional[str]
    enabled: bool
    pin_hash: Optional[str]
    user_id: Optional[UUID]
    company_id: str

    @classmethod
    def from_worker(cls, worker: Worker) -> "_Signer":
        return cls(
            id=worker.id,
            rut=worker.rut,
            name=worker.full_name,
            position=worker.position,
            enabled=worker.enabled,
            pin_hash=worker.pin_hash,
            user_id=worker.user_id,
            company_id=worker.company_id,
        )

    @classmethod
    def from_user(cls, user: User) -> "_Signer":
        return cls(
            id=user.id,
            rut=user.rut,
            name=user.full_name,
            position=user.position,
            enabled=user.enabled,
            pin_hash=user.pin_hash,
            user_id=user.id,
            company_id=user.company_id,
        )


class _ItemRejected(Exception):
    def __init__(self, code: SignatureErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class ProcessOfflineBatchUseCase:
    def __init__(
        self,
        worker_repository: WorkerRepository,
        user_repository: UserRepository,
        signature_repository: SignatureRepository,
        request_repository: SignatureRequestRepository,
        codec: PinCodec,
        clock: Clock = utc_now,
        max_items: int = 200,
    ) -> None:
        self._workers = worker_repository
        self._users = user_repository
        self._signatures = signature_repository
        self._requests = request_repository
        self._codec = codec
        self._clock = clock
        self._max_items = max_items

    def execute(self, input_data: OfflineBatchInput) -> OfflineBatchResult:
        title = (input_data.title or "").strip()
        if not title:
            return OfflineBatchResult(error=validation_error("El título es obligatorio"))
        if not input_data.items:
            return OfflineBatchResult(
                error=validation_error("El lote no contiene firmas")
            )
        if len(input_data.items) > self._max_items:
            return OfflineBatchResult(
                error=validation_error(
                    f"El lote excede el máximo de {self._max_items} firmas"
                )
            )

        requester = self._users.get_user(input_data.requester_id)
        if requester is None:
            return OfflineBatchResult(error=not_found_error("Solicitante no encontrado"))

        now = self._clock()
        request_id = uuid4()
        cache: Dict[str, object] = {}
        outcomes: List[OfflineItemOutcome] = []
        accepted_signers: Dict[UUID, RequestSigner] = {}

        for index, item in enumerate(input_data.items):
            outcome, signature = self._process_item(
                item, index, cache, now, request_id, input_data
            )
            outcomes.append(outcome)
            record_offline_item(
                "accepted" if outcome.success else outcome.error_code.value
            )
            if signature is not None and signature.worker_id not in accepted_signers:
                accepted_signers[signature.worker_id] = RequestSigner(
                    worker_id=signature.worker_id,
                    name=signature.signer_name,
                    rut=signature.signer_rut,
                    position=signature.metadata.get("position"),
                    signed=True,
                    signature_id=signature.id,
                    signed_at=signature.timestamp,
                )

        accepted = sum(1 for o in outcomes if o.success)
        attempted = len(outcomes)
        result = OfflineBatchResult(
            accepted=accepted, rejected=attempted - accepted, items=outcomes
        )

        request = SignatureRequest(
            id=request_id,
            request_type=input_data.request_type,
            title=title,
            description=input_data.description,
            requester_id=requester.id,
            requester_name=requester.full_name,
            signers=list(accepted_signers.values()),
            required_count=attempted,
            completed_count=accepted,
            state=derive_request_state(
                SignatureRequestState.PENDING, accepted, attempted
            ),
            completed_at=now if accepted == attempted else None,
            location=input_data.location,
            company_id=requester.company_id,
            offline=True,
            synced_at=now,
            created_at=(
                as_utc(input_data.created_offline_at)
                if input_data.created_offline_at
                else now
            ),
            updated_at=now,
        )
        try:
            self._requests.create_request(request)
            result.request_id = request_id
        except Exception:
            logger.exception(
                "Lote offline procesado pero no se pudo crear la solicitud",
                extra={"request_id": str(request_id)},
            )

        logger.info(
            "Lote offline reconciliado",
            extra={
                "request_id": str(request_id),
                "accepted": result.accepted,
                "rejected": result.rejected,
            },
        )
        return result

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _process_item(
        self,
        item: OfflineSignatureItem,
        index: int,
        cache: Dict[str, object],
        now: datetime,
        request_id: UUID,
        input_data: OfflineBatchInput,
    ) -> tuple[OfflineItemOutcome, Optional[Signature]]:
        canonical = normalize_rut(item.rut)
        display_rut = canonical or (item.rut or "")
        try:
            if canonical is None:
                raise _ItemRejected(SignatureErrorCode.VALIDATION_ERROR, "invalid RUT")

            signer = self._resolve(canonical, cache)
            if signer is None:
                raise _ItemRejected(SignatureErrorCode.NOT_FOUND, "identity not found")
            if not signer.enabled:
                raise _ItemRejected(SignatureErrorCode.AUTH_ERROR, "not enabled")
            if not signer.pin_hash:
                raise _ItemRejected(
                    SignatureErrorCode.VALIDATION_ERROR, "no PIN configured"
                )
            if not self._codec.verify_pin(item.pin, signer.pin_hash, signer.id):
                raise _ItemRejected(SignatureErrorCode.AUTH_ERROR, "invalid PIN")

            signature = self._signatures.create_signature(
                new_signature(
                    codec=self._codec,
                    signer_id=signer.id,
                    signer_rut=signer.rut,
                    signer_name=signer.name,
                    purpose=offline_purpose(input_data.request_type),
                    method=ValidationMethod.PIN_OFFLINE,
                    attested_at=(
                        as_utc(item.client_timestamp) if item.client_timestamp else now
                    ),
                    recorded_at=now,
                    synced_at=now,
                    context=input_data.context,
                    user_id=signer.user_id,
                    reference_id=str(request_id),
                    reference_type="signature_request",
                    request_id=request_id,
                    metadata={
                        "request_type": input_data.request_type.value,
                        "client_name": item.name,
                        "position": signer.position,
                        "batch_index": index,
                    },
                    company_id=signer.company_id,
                )
            )
        except _ItemRejected as rejected:
            logger.info(
                "Ítem offline rechazado",
                extra={"batch_index": index, "reason": rejected.message},
            )
            return (
                OfflineItemOutcome(
                    rut=display_rut,
                    success=False,
                    error_code=rejected.code,
                    error=rejected.message,
                ),
                None,
            )
        except Exception:
            logger.exception(
                "Falla de store procesando ítem offline", extra={"batch_index": index}
            )
            return (
                OfflineItemOutcome(
                    rut=display_rut,
                    success=False,
                    error_code=SignatureErrorCode.INTERNAL_ERROR,
                    error="internal error",
                ),
                None,
            )

        record_signature_created(
            signature.purpose.value, signature.validation_method.value
        )
        return (
            OfflineItemOutcome(
                rut=display_rut,
                success=True,
                signature_id=signature.id,
                token=signature.token,
            ),
            signature,
        )

    def _resolve(self, rut: str, cache: Dict[str, object]) -> Optional[_Signer]:
        """Worker -> User con Worker vinculado -> User sin Worker."""
        cached = cache.get(rut, _UNRESOLVED)
        if cached is not _UNRESOLVED:
            return cached  # type: ignore[return-value]

        signer: Optional[_Signer] = None
        worker = self._workers.get_worker_by_rut(rut)
        if worker is not None:
            signer = _Signer.from_worker(worker)
        else:
            user = self._users.get_user_by_rut(rut)
            if user is not None:
                linked = (
                    self._workers.get_worker(user.worker_id)
                    if user.worker_id is not None
                    else None
                )
                if linked is not None:
                    signer = _Signer.from_worker(linked)
                elif user.pin_hash:
                    # Sin Worker sólo firma un User con PIN propio.
                    signer = _Signer.from_user(user)

        cache[rut] = signer
        return signer
