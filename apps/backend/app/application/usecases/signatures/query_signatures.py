"""
===============================================================================
USE CASES: Signature queries (verify / disputes / signer history)
===============================================================================

Lecturas del ledger usadas por auditoría:
  - VerifySignatureUseCase: buscar una firma por token.
  - ListDisputedSignaturesUseCase: bandeja de disputas abiertas.
  - GetSignerHistoryUseCase: historial de una persona, uniendo sus ids de
    User y Worker (las firmas pueden estar a nombre de cualquiera de los dos).
===============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from ....domain.entities import Signature, SignatureState
from ....domain.repositories import (
    SignatureRepository,
    UserRepository,
    WorkerRepository,
)
from .signature_results import (
    SignatureListResult,
    SignatureResult,
    not_found_error,
    validation_error,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _reported_at(signature: Signature) -> datetime:
    return signature.dispute.reported_at if signature.dispute else _EPOCH


class VerifySignatureUseCase:
    def __init__(self, signature_repository: SignatureRepository) -> None:
        self._signatures = signature_repository

    def execute(self, token: str) -> SignatureResult:
        normalized = (token or "").strip().upper()
        if not normalized:
            return SignatureResult(error=validation_error("Token requerido"))

        signature = self._signatures.get_signature_by_token(normalized)
        if signature is None:
            return SignatureResult(error=not_found_error("Firma no encontrada"))
        return SignatureResult(signature=signature)


class ListDisputedSignaturesUseCase:
    """Firmas en estado disputed, las reportadas más recientemente primero."""

    def __init__(self, signature_repository: SignatureRepository) -> None:
        self._signatures = signature_repository

    def execute(self) -> SignatureListResult:
        disputed = self._signatures.list_signatures_by_state(SignatureState.DISPUTED)
        disputed.sort(key=_reported_at, reverse=True)
        return SignatureListResult(signatures=disputed)


class GetSignerHistoryUseCase:
    def __init__(
        self,
        signature_repository: SignatureRepository,
        worker_repository: WorkerRepository,
        user_repository: UserRepository,
    ) -> None:
        self._signatures = signature_repository
        self._workers = worker_repository
        self._users = user_repository

    def execute(self, identity_id: UUID) -> SignatureListResult:
        identity_ids = {identity_id}

        worker = self._workers.get_worker(identity_id)
        if worker is not None and worker.user_id is not None:
            identity_ids.add(worker.user_id)

        user = self._users.get_user(identity_id)
        if user is not None and user.worker_id is not None:
            identity_ids.add(user.worker_id)

        if worker is None and user is None:
            return SignatureListResult(
                signatures=[], error=not_found_error("Identidad no encontrada")
            )

        signatures = self._signatures.list_signatures_for_identities(
            sorted(identity_ids, key=str)
        )
        signatures.sort(key=lambda s: s.timestamp, reverse=True)
        logger.debug(
            "Historial de firmas resuelto ids=%d total=%d",
            len(identity_ids),
            len(signatures),
        )
        return SignatureListResult(signatures=signatures)
