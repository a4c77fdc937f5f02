"""
===============================================================================
SIGNATURE REQUEST USE CASES (Public API / Exports)
===============================================================================

Tracker de solicitudes de firma (proyección derivada del ledger) y
reconciliación de lotes offline.
===============================================================================
"""

from __future__ import annotations

from .create_signature_request import (
    CreateSignatureRequestInput,
    CreateSignatureRequestUseCase,
)
from .manage_signature_requests import (
    DEFAULT_CANCEL_REASON,
    CancelSignatureRequestUseCase,
    ExpireOverdueRequestsUseCase,
    GetSignatureRequestUseCase,
    ListPendingRequestsForWorkerUseCase,
)
from .process_offline_batch import OfflineBatchInput, ProcessOfflineBatchUseCase
from .record_signer import RecordSignerUseCase
from .request_results import (
    ExpireRequestsResult,
    OfflineBatchResult,
    OfflineItemOutcome,
    RecordSignerResult,
    SignatureRequestDetailResult,
    SignatureRequestListResult,
    SignatureRequestResult,
    derive_request_state,
)

__all__ = [
    # Use Cases
    "CreateSignatureRequestUseCase",
    "CreateSignatureRequestInput",
    "RecordSignerUseCase",
    "CancelSignatureRequestUseCase",
    "GetSignatureRequestUseCase",
    "ListPendingRequestsForWorkerUseCase",
    "ExpireOverdueRequestsUseCase",
    "ProcessOfflineBatchUseCase",
    "OfflineBatchInput",
    "DEFAULT_CANCEL_REASON",
    # Results
    "SignatureRequestResult",
    "SignatureRequestDetailResult",
    "SignatureRequestListResult",
    "ExpireRequestsResult",
    "RecordSignerResult",
    "OfflineBatchResult",
    "OfflineItemOutcome",
    "derive_request_state",
]
