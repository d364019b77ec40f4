"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts the
application layer depends on. Adapters implement them.
"""

from sqlite_engine.ports.connection_pool import ConnectionPool, PoolStats

__all__ = [
    "ConnectionPool",
    "PoolStats",
]
