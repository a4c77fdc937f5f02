"""
============================================================
TARJETA CRC — infrastructure/__init__.py
============================================================
Capa de infraestructura: pool DB, repositorios (Postgres / InMemory) y
adapters de servicios (notificaciones).

Policy:
  - Sin imports eager: el composition root importa los subpaquetes que usa.
============================================================
"""
