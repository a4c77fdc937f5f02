"""
===============================================================================
ENROLLMENT USE CASES (Public API / Exports)
===============================================================================

UNENROLLED -> PIN_SET -> ENABLED para el par (User, Worker).
===============================================================================
"""

from __future__ import annotations

from .complete_enrollment import CompleteEnrollmentUseCase
from .complete_worker_enrollment import CompleteWorkerEnrollmentUseCase
from .enrollment_results import EnrollmentResult, SetPinResult
from .set_pin import SetPinUseCase

__all__ = [
    "SetPinUseCase",
    "CompleteEnrollmentUseCase",
    "CompleteWorkerEnrollmentUseCase",
    "SetPinResult",
    "EnrollmentResult",
]
