"""
===============================================================================
USE CASES: Dispute / Resolve Signature
===============================================================================

Sub-máquina de disputa:

    valid --dispute--> disputed --resolve--> {valid, revoked}

- Sólo `valid` puede disputarse; sólo `disputed` puede resolverse.
- Ambas escrituras son condicionales sobre el estado esperado: si otro
  proceso ganó la carrera, el resultado es CONFLICT.
- Una firma resuelta a `valid` puede volver a disputarse.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from ....crosscutting.exceptions import StaleRecordError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_dispute_transition
from ....domain.entities import DisputeInfo, SignatureState
from ....domain.repositories import SignatureRepository
from .ledger import Clock, utc_now
from .signature_results import (
    SignatureResult,
    conflict_error,
    not_found_error,
    validation_error,
)

RESOLUTION_STATES = frozenset({SignatureState.VALID, SignatureState.REVOKED})


class DisputeSignatureUseCase:
    """valid -> disputed."""

    def __init__(
        self, signature_repository: SignatureRepository, clock: Clock = utc_now
    ) -> None:
        self._signatures = signature_repository
        self._clock = clock

    def execute(
        self, signature_id: UUID, reason: str, reporter_id: str
    ) -> SignatureResult:
        reason = (reason or "").strip()
        if not reason:
            return SignatureResult(error=validation_error("El motivo es obligatorio"))

        signature = self._signatures.get_signature(signature_id)
        if signature is None:
            return SignatureResult(error=not_found_error("Firma no encontrada"))
        if signature.state != SignatureState.VALID:
            return SignatureResult(
                error=conflict_error(
                    f"Solo se pueden disputar firmas válidas (estado: {signature.state.value})"
                )
            )

        dispute = DisputeInfo(
            reason=reason, reported_by=str(reporter_id), reported_at=self._clock()
        )
        try:
            updated = self._signatures.update_signature_state(
                signature_id,
                state=SignatureState.DISPUTED,
                dispute=dispute,
                expected_state=SignatureState.VALID,
            )
        except StaleRecordError:
            return SignatureResult(
                error=conflict_error("La firma cambió de estado concurrentemente")
            )
        if updated is None:
            return SignatureResult(error=not_found_error("Firma no encontrada"))

        record_dispute_transition(SignatureState.DISPUTED.value)
        logger.info(
            "Firma disputada",
            extra={"signature_id": str(signature_id), "reported_by": str(reporter_id)},
        )
        return SignatureResult(signature=updated)


class ResolveDisputeUseCase:
    """disputed -> valid | revoked."""

    def __init__(
        self, signature_repository: SignatureRepository, clock: Clock = utc_now
    ) -> None:
        self._signatures = signature_repository
        self._clock = clock

    def execute(
        self,
        signature_id: UUID,
        resolution: str,
        resolver_id: str,
        new_state: SignatureState,
    ) -> SignatureResult:
        if new_state not in RESOLUTION_STATES:
            return SignatureResult(
                error=validation_error("El nuevo estado debe ser valid o revoked")
            )
        resolution = (resolution or "").strip()
        if not resolution:
            return SignatureResult(
                error=validation_error("La resolución es obligatoria")
            )

        signature = self._signatures.get_signature(signature_id)
        if signature is None:
            return SignatureResult(error=not_found_error("Firma no encontrada"))
        if signature.state != SignatureState.DISPUTED:
            return SignatureResult(
                error=conflict_error(
                    f"Solo se pueden resolver firmas disputadas (estado: {signature.state.value})"
                )
            )

        now = self._clock()
        base = signature.dispute or DisputeInfo(
            reason="", reported_by="", reported_at=now
        )
        dispute = replace(
            base, resolution=resolution, resolved_by=str(resolver_id), resolved_at=now
        )
        try:
            updated = self._signatures.update_signature_state(
                signature_id,
                state=new_state,
                dispute=dispute,
                expected_state=SignatureState.DISPUTED,
            )
        except StaleRecordError:
            return SignatureResult(
                error=conflict_error("La firma cambió de estado concurrentemente")
            )
        if updated is None:
            return SignatureResult(error=not_found_error("Firma no encontrada"))

        record_dispute_transition(new_state.value)
        logger.info(
            "Disputa resuelta",
            extra={"signature_id": str(signature_id), "new_state": new_state.value},
        )
        return SignatureResult(signature=updated)
