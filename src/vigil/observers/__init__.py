"""Audit lifecycle observers."""

from vigil.observers.base import (
    AuditObserver,
    CompositeObserver,
    ConsoleObserver,
    LoggingObserver,
    NullObserver,
)

__all__ = [
    "AuditObserver",
    "CompositeObserver",
    "ConsoleObserver",
    "LoggingObserver",
    "NullObserver",
]
