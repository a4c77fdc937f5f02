"""
===============================================================================
TARJETA CRC — dependencies.py (Dependencias y helpers comunes)
===============================================================================

Responsabilidades:
  - Construir el AttestationContext (IP + User-Agent) desde el request HTTP.
  - Guardas de "la propia identidad o un permiso" reutilizadas por routers.

Colaboradores:
  - domain.value_objects.AttestationContext
  - identity.users (Permission, has_permission)
  - crosscutting.error_responses.forbidden
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from app.crosscutting.error_responses import forbidden
from app.domain.entities import User
from app.domain.value_objects import AttestationContext
from app.identity.users import Permission, has_permission
from fastapi import Request


def client_ip(request: Request) -> str | None:
    """Primer hop de X-Forwarded-For; si no hay, el host del socket."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",", 1)[0].strip()
    if first:
        return first
    return request.client.host if request.client else None


def attestation_context(request: Request) -> AttestationContext:
    """Dependency FastAPI: contexto que queda registrado en cada firma."""
    return AttestationContext(
        ip_address=client_ip(request) or "",
        user_agent=request.headers.get("user-agent", ""),
    )


def ensure_self_or_permission(
    actor: User,
    *,
    identity_id: UUID,
    permission: Permission,
) -> None:
    """El actor opera sobre sí mismo (User o su Worker vinculado) o tiene el permiso."""
    if identity_id in (actor.id, actor.worker_id):
        return
    if has_permission(actor, permission):
        return
    raise forbidden("No tenés permisos sobre esta identidad.")
