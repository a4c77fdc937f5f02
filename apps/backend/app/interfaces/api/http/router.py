"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter raíz que se incluye en FastAPI (app.include_router).
  - Centralizar responses RFC7807 para OpenAPI.
  - Componer routers por feature (identities/enrollment/signatures/
    signature-requests).

Patrones aplicados:
  - Composition over inheritance: router raíz compone sub-routers.
  - Factory: build_router() para testear composición sin side-effects.

Notas:
  - Este router se incluye desde app/api/main.py con prefix="/v1".
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers.enrollment import router as enrollment_router
from .routers.identities import router as identities_router
from .routers.signature_requests import router as signature_requests_router
from .routers.signatures import router as signatures_router


def build_router() -> APIRouter:
    """Construye el router raíz v1."""
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)

    api_router.include_router(identities_router)
    api_router.include_router(enrollment_router)
    api_router.include_router(signatures_router)
    api_router.include_router(signature_requests_router)

    return api_router


router = build_router()

__all__ = ["router", "build_router"]
