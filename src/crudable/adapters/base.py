"""Database client protocol definition.

Defines the read-only ``DatabaseClient`` Protocol the relation payload
loader consumes.  Writes go through the surrounding data-access layer,
never through crudable.  All methods are ``async def``.

Usage:
    from crudable.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        rows = await client.select("Person", "*", filters={"id": 1})
        await client.close()
"""

from typing import Any, Protocol


class DatabaseClient(Protocol):
    """Read interface that adapters must implement.

    All methods are async -- callers must ``await`` every operation.
    """

    async def select(
        self,
        table: str,
        columns: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows from table.

        Args:
            table: Table name.
            columns: Comma-separated column names, or ``"*"``.
            filters: Optional dict of field=value filters (all must match via
                AND).  A list or tuple value matches any of its items.
            order_by: Optional ``"field [ASC|DESC], ..."`` sort clause.

        Returns:
            List of dicts, one per row.  Empty list if no matches.

        Example:
            rows = await client.select(
                "OrganizationPerson",
                "*",
                filters={"idOrganization": 1},
                order_by="position ASC",
            )
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
