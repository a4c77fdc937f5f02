"""
===============================================================================
TARJETA CRC — schemas/__init__.py
===============================================================================

Módulo:
    Paquete de Schemas HTTP (DTOs Pydantic)

Responsabilidades:
    - Agrupar contratos HTTP por feature (enrollment/signatures/signature_requests).
    - Mantener separados DTOs (schemas) de controladores (routers).

Reglas:
    - Schemas NO deben importar infraestructura.
    - Schemas NO deben ejecutar casos de uso.
    - Solo tipos, validación de input/output y mappers entidad -> DTO.
===============================================================================
"""

__all__ = []
