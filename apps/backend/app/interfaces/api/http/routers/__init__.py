"""
===============================================================================
TARJETA CRC — app/interfaces/api/http/routers/__init__.py
===============================================================================

Name:
    Routers Package (HTTP)

Responsibilities:
    - Exponer routers segmentados por feature para el router principal.

Collaborators:
    - routers.enrollment
    - routers.identities
    - routers.signatures
    - routers.signature_requests

Notas:
    - Este archivo NO define endpoints. Solo re-exporta routers.
===============================================================================
"""

from .enrollment import router as enrollment_router
from .identities import router as identities_router
from .signature_requests import router as signature_requests_router
from .signatures import router as signatures_router

__all__ = [
    "enrollment_router",
    "identities_router",
    "signatures_router",
    "signature_requests_router",
]
