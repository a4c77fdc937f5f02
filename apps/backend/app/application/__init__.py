"""
===============================================================================
APPLICATION LAYER
===============================================================================

Casos de uso del motor de firmas por PIN, agrupados en `usecases/`:
  - enrollment: configuración de PIN y enrolamiento (reconciliación User/Worker)
  - signatures: ledger de firmas, disputas y consultas de auditoría
  - signature_requests: solicitudes de firma y lotes offline

Nota:
  - Sin imports eager acá: evita ciclos con el composition root.
===============================================================================
"""
