"""
===============================================================================
TARJETA CRC — schemas/signature_requests.py
===============================================================================

Módulo:
    Schemas HTTP para solicitudes de firma y lotes offline

Responsabilidades:
    - DTOs de creación/cancelación de solicitudes y del lote offline.
    - Límite del lote desde settings (offline_batch_max_items).
    - Resultado parcial estructurado del lote (siempre 200).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from app.crosscutting.config import get_settings
from app.domain.entities import (
    RequestSigner,
    SignatureRequest,
    SignatureRequestState,
    SignatureRequestType,
)
from pydantic import BaseModel, Field

from .signatures import SignatureRes

_settings = get_settings()


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class CreateSignatureRequestReq(BaseModel):
    request_type: SignatureRequestType
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    signer_ids: list[UUID] = Field(..., min_length=1, max_length=500)
    due_at: datetime | None = None
    location: str | None = Field(default=None, max_length=200)


class CancelSignatureRequestReq(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class OfflineItemReq(BaseModel):
    rut: str = Field(..., max_length=20)
    pin: str = Field(..., max_length=16)
    timestamp: datetime | None = Field(
        default=None, description="Hora de firma en el dispositivo"
    )
    name: str | None = Field(default=None, max_length=200)


class OfflineBatchReq(BaseModel):
    request_type: SignatureRequestType
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    location: str | None = Field(default=None, max_length=200)
    created_offline_at: datetime | None = None
    items: list[OfflineItemReq] = Field(
        ..., min_length=1, max_length=_settings.offline_batch_max_items
    )


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class RequestSignerRes(BaseModel):
    worker_id: UUID
    name: str
    rut: str
    position: str | None = None
    signed: bool
    signature_id: UUID | None = None
    signed_at: datetime | None = None

    @classmethod
    def from_entity(cls, signer: RequestSigner) -> "RequestSignerRes":
        return cls(
            worker_id=signer.worker_id,
            name=signer.name,
            rut=signer.rut,
            position=signer.position,
            signed=signer.signed,
            signature_id=signer.signature_id,
            signed_at=signer.signed_at,
        )


class SignatureRequestRes(BaseModel):
    id: UUID
    request_type: SignatureRequestType
    title: str
    description: str | None = None
    requester_id: UUID
    requester_name: str
    signers: list[RequestSignerRes]
    required_count: int
    completed_count: int
    state: SignatureRequestState
    due_at: datetime | None = None
    completed_at: datetime | None = None
    location: str | None = None
    offline: bool
    synced_at: datetime | None = None
    cancel_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, request: SignatureRequest) -> "SignatureRequestRes":
        return cls(
            id=request.id,
            request_type=request.request_type,
            title=request.title,
            description=request.description,
            requester_id=request.requester_id,
            requester_name=request.requester_name,
            signers=[RequestSignerRes.from_entity(s) for s in request.signers],
            required_count=request.required_count,
            completed_count=request.completed_count,
            state=request.state,
            due_at=request.due_at,
            completed_at=request.completed_at,
            location=request.location,
            offline=request.offline,
            synced_at=request.synced_at,
            cancel_reason=request.cancel_reason,
            created_at=request.created_at,
            updated_at=request.updated_at,
        )


class SignatureRequestDetailRes(SignatureRequestRes):
    signatures: list[SignatureRes] = Field(default_factory=list)


class SignatureRequestsListRes(BaseModel):
    requests: list[SignatureRequestRes]
    total: int


class OfflineItemRes(BaseModel):
    rut: str
    success: bool
    signature_id: UUID | None = None
    token: str | None = None
    error_code: str | None = None
    error: str | None = None


class OfflineBatchRes(BaseModel):
    accepted: int
    rejected: int
    items: list[OfflineItemRes]
    request_id: UUID | None = Field(
        default=None,
        description="Solicitud creada para el lote (None si no se pudo persistir)",
    )


class ExpireRequestsRes(BaseModel):
    expired: list[SignatureRequestRes]
    skipped: int = Field(description="Solicitudes que cambiaron durante la corrida")
