"""Schema configuration: table/field models and schema file loading.

Usage:
    >>> from crudable.config import load_schema, SchemaDefinition, TableDefinition
"""

from crudable.config.loader import load_schema, parse_schema, resolve_schema_path
from crudable.config.models import (
    FieldDefinition,
    SchemaDefinition,
    SortSpec,
    TableDefinition,
)

__all__ = [
    "load_schema",
    "parse_schema",
    "resolve_schema_path",
    "FieldDefinition",
    "SchemaDefinition",
    "SortSpec",
    "TableDefinition",
]
