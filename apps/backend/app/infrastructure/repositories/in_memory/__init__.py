"""
In-Memory Repository Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .identities import InMemoryUserRepository, InMemoryWorkerRepository
from .signatures import InMemorySignatureRepository, InMemorySignatureRequestRepository

__all__ = [
    # Identities
    "InMemoryUserRepository",
    "InMemoryWorkerRepository",
    # Ledger + requests
    "InMemorySignatureRepository",
    "InMemorySignatureRequestRepository",
]
