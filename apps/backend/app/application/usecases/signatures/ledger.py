"""
===============================================================================
SIGNATURE LEDGER HELPERS
===============================================================================

Construcción de registros de firma compartida por enrolamiento, firma
interactiva y reconciliación offline. Un único lugar decide cómo se derivan
fecha/horario, token y metadatos de atestación.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional
from uuid import UUID, uuid4

from ....domain.entities import (
    Signature,
    SignaturePurpose,
    ValidationMethod,
    attestation_date_time,
)
from ....domain.value_objects import AttestationContext
from ....identity.credentials import PinCodec

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Timestamps de cliente sin zona se interpretan como UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def new_signature(
    *,
    codec: PinCodec,
    signer_id: UUID,
    signer_rut: str,
    signer_name: str,
    purpose: SignaturePurpose,
    method: ValidationMethod,
    attested_at: datetime,
    recorded_at: datetime,
    context: AttestationContext,
    user_id: Optional[UUID] = None,
    reference_id: Optional[str] = None,
    reference_type: Optional[str] = None,
    request_id: Optional[UUID] = None,
    synced_at: Optional[datetime] = None,
    metadata: Mapping[str, Any] | None = None,
    company_id: str = "default",
) -> Signature:
    """
    Arma una Signature nueva (estado valid) con token recién generado.

    attested_at es la hora que el firmante atestigua; recorded_at es la hora
    del servidor al escribir.
    """
    signed_date, signed_time = attestation_date_time(attested_at)
    return Signature(
        id=uuid4(),
        token=codec.generate_token(),
        worker_id=signer_id,
        user_id=user_id,
        signer_rut=signer_rut,
        signer_name=signer_name,
        purpose=purpose,
        reference_id=reference_id,
        reference_type=reference_type,
        request_id=request_id,
        signed_date=signed_date,
        signed_time=signed_time,
        timestamp=attested_at,
        synced_at=synced_at,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
        validation_method=method,
        metadata=dict(metadata or {}),
        company_id=company_id,
        created_at=recorded_at,
    )
