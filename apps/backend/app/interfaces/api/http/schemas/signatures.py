"""
===============================================================================
TARJETA CRC — schemas/signatures.py
===============================================================================

Módulo:
    Schemas HTTP para el ledger de firmas

Responsabilidades:
    - DTOs de firma interactiva, disputa, resolución y verificación.
    - Mapper entidad -> DTO (SignatureRes.from_entity).

Reglas:
    - Nunca se expone el hash de PIN ni el PIN.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from app.domain.entities import (
    DisputeInfo,
    Signature,
    SignaturePurpose,
    SignatureState,
    ValidationMethod,
)
from app.identity.rut import format_rut
from pydantic import BaseModel, Field


class CreateSignatureReq(BaseModel):
    worker_id: UUID
    pin: str = Field(..., max_length=16)
    purpose: SignaturePurpose
    reference_id: str | None = Field(default=None, max_length=200)
    reference_type: str | None = Field(default=None, max_length=100)
    request_id: UUID | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class DisputeSignatureReq(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class ResolveDisputeReq(BaseModel):
    resolution: str = Field(..., min_length=1, max_length=2000)
    new_state: Literal["valid", "revoked"]


class DisputeRes(BaseModel):
    reason: str
    reported_by: str
    reported_at: datetime
    resolution: str | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None

    @classmethod
    def from_entity(cls, dispute: DisputeInfo) -> "DisputeRes":
        return cls(
            reason=dispute.reason,
            reported_by=dispute.reported_by,
            reported_at=dispute.reported_at,
            resolution=dispute.resolution,
            resolved_by=dispute.resolved_by,
            resolved_at=dispute.resolved_at,
        )


class SignatureRes(BaseModel):
    id: UUID
    token: str
    worker_id: UUID
    user_id: UUID | None = None
    signer_rut: str = Field(description="RUT con formato 12.345.678-5")
    signer_name: str
    purpose: SignaturePurpose
    reference_id: str | None = None
    reference_type: str | None = None
    request_id: UUID | None = None
    signed_date: str
    signed_time: str
    timestamp: datetime
    validation_method: ValidationMethod
    ip_address: str
    user_agent: str
    synced_at: datetime | None = None
    offline: bool = False
    state: SignatureState
    dispute: DisputeRes | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entity(cls, signature: Signature) -> "SignatureRes":
        return cls(
            id=signature.id,
            token=signature.token,
            worker_id=signature.worker_id,
            user_id=signature.user_id,
            signer_rut=format_rut(signature.signer_rut),
            signer_name=signature.signer_name,
            purpose=signature.purpose,
            reference_id=signature.reference_id,
            reference_type=signature.reference_type,
            request_id=signature.request_id,
            signed_date=signature.signed_date,
            signed_time=signature.signed_time,
            timestamp=signature.timestamp,
            validation_method=signature.validation_method,
            ip_address=signature.ip_address,
            user_agent=signature.user_agent,
            synced_at=signature.synced_at,
            offline=signature.is_offline,
            state=signature.state,
            dispute=DisputeRes.from_entity(signature.dispute)
            if signature.dispute
            else None,
            metadata=dict(signature.metadata or {}),
        )


class SignaturesListRes(BaseModel):
    signatures: list[SignatureRes]
    total: int


class VerifySignatureRes(BaseModel):
    """Verificación pública por token (QR / auditoría)."""

    valid: bool = Field(description="True si la firma existe y su estado es valid")
    signature: SignatureRes
