"""
Infrastructure Services (Infrastructure Layer)

Facade/Barrel de `infrastructure.services`: adapters concretos de los puertos
de `domain.services`.
"""

from .logging_notifier import (  # noqa: F401
    InMemoryNotificationSender,
    LoggingNotificationSender,
    SentNotification,
)

__all__ = [
    "LoggingNotificationSender",
    "InMemoryNotificationSender",
    "SentNotification",
]
