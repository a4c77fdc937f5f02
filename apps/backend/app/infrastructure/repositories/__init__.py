"""
============================================================
TARJETA CRC
============================================================
Class: app.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de repositorios (Postgres e InMemory)
  en un único punto de importación.
- Mantener una API estable para el composition root (container.py).

Collaborators:
- Repositorios Postgres (SQL crudo, psycopg)
- Repositorios InMemory (tests / dev)
============================================================
"""

# ---------------------------
# In-memory implementations
# Usados para tests unitarios rápidos o APP_ENV=test.
# No persisten datos tras reiniciar la app.
# ---------------------------
from .in_memory import (
    InMemorySignatureRepository,
    InMemorySignatureRequestRepository,
    InMemoryUserRepository,
    InMemoryWorkerRepository,
)

# ---------------------------
# Postgres implementations
# ---------------------------
from .postgres import (
    PostgresSignatureRepository,
    PostgresSignatureRequestRepository,
    PostgresUserRepository,
    PostgresWorkerRepository,
)

__all__ = [
    # Postgres
    "PostgresUserRepository",
    "PostgresWorkerRepository",
    "PostgresSignatureRepository",
    "PostgresSignatureRequestRepository",
    # In-memory
    "InMemoryUserRepository",
    "InMemoryWorkerRepository",
    "InMemorySignatureRepository",
    "InMemorySignatureRequestRepository",
]
