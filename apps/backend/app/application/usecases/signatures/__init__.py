"""
===============================================================================
SIGNATURE LEDGER USE CASES (Public API / Exports)
===============================================================================

Firma interactiva, sub-máquina de disputa y consultas de auditoría, más los
modelos de resultado compartidos por enrolamiento y solicitudes de firma.
===============================================================================
"""

from __future__ import annotations

from .create_signature import CreateSignatureInput, CreateSignatureUseCase
from .dispute_signature import DisputeSignatureUseCase, ResolveDisputeUseCase
from .ledger import Clock, as_utc, new_signature, utc_now
from .query_signatures import (
    GetSignerHistoryUseCase,
    ListDisputedSignaturesUseCase,
    VerifySignatureUseCase,
)
from .signature_results import (
    SignatureError,
    SignatureErrorCode,
    SignatureListResult,
    SignatureResult,
)

__all__ = [
    # Use Cases
    "CreateSignatureUseCase",
    "CreateSignatureInput",
    "DisputeSignatureUseCase",
    "ResolveDisputeUseCase",
    "VerifySignatureUseCase",
    "ListDisputedSignaturesUseCase",
    "GetSignerHistoryUseCase",
    # Results
    "SignatureError",
    "SignatureErrorCode",
    "SignatureResult",
    "SignatureListResult",
    # Ledger helpers
    "Clock",
    "as_utc",
    "new_signature",
    "utc_now",
]
