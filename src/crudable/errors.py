"""Exception types raised by schema derivation and template generation.

Usage:
    from crudable.errors import UnknownTableError, SchemaIntegrityError

    try:
        template = synthesizer.generate("Organization")
    except UnknownTableError as e:
        print(f"No such table: {e.table}")
"""


class CrudableError(Exception):
    """Base class for all crudable errors."""

    pass


class UnknownTableError(CrudableError, KeyError):
    """Raised when a requested table is absent from the loaded schema."""

    def __init__(self, table: str, available: list[str] | None = None) -> None:
        self.table = table
        self.available = available or []
        super().__init__(table)

    def __str__(self) -> str:
        message = f"Table '{self.table}' not found in schema"
        if self.available:
            message += f"\nAvailable tables: {', '.join(self.available)}"
        return message


class SchemaIntegrityError(CrudableError, ValueError):
    """Raised when table or field definitions are malformed.

    Surfaced while deriving relations so that broken schemas fail at
    generation time rather than at render time.
    """

    pass
