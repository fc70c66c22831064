"""Database adapters package.

Provides the read-only ``DatabaseClient`` Protocol and the async
PostgreSQL adapter used to load relation payloads.

Usage:
    from crudable.adapters import DatabaseClient, AsyncPostgresAdapter
"""

from crudable.adapters.base import DatabaseClient
from crudable.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "DatabaseClient",
    "AsyncPostgresAdapter",
]
