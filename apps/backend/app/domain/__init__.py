"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio (API pública del dominio)

Responsabilidades:
    - Centralizar exports para imports limpios en application/interfaces.
    - Mantener estable el “surface area” del dominio.

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .entities import (
    DisputeInfo,
    EnrollmentSnapshot,
    EnrollmentState,
    IdentityKind,
    RequestSigner,
    Signature,
    SignaturePurpose,
    SignatureRequest,
    SignatureRequestState,
    SignatureRequestType,
    SignatureState,
    User,
    UserRole,
    UserStatus,
    ValidationMethod,
    Worker,
    enrollment_state,
)
from .repositories import (
    SignatureRepository,
    SignatureRequestRepository,
    UserRepository,
    WorkerRepository,
)
from .services import NotificationSender
from .value_objects import AttestationContext, OfflineSignatureItem

__all__ = [
    # Entities
    "User",
    "Worker",
    "Signature",
    "DisputeInfo",
    "EnrollmentSnapshot",
    "SignatureRequest",
    "RequestSigner",
    "enrollment_state",
    # Enums
    "UserRole",
    "UserStatus",
    "IdentityKind",
    "EnrollmentState",
    "SignaturePurpose",
    "ValidationMethod",
    "SignatureState",
    "SignatureRequestType",
    "SignatureRequestState",
    # Repository Interfaces (Ports)
    "UserRepository",
    "WorkerRepository",
    "SignatureRepository",
    "SignatureRequestRepository",
    # Service Interfaces (Ports)
    "NotificationSender",
    # Value Objects
    "AttestationContext",
    "OfflineSignatureItem",
]
