"""Pydantic models for declarative table schemas.

Schema files use camelCase keys (``isPrimary``, ``foreignKey``,
``arrayName``...).  The models accept those aliases and also the
snake_case attribute names, so schemas can be built in code too.

All models are frozen: a loaded schema is an immutable snapshot.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_SYSTEM_FIELDS: tuple[str, ...] = ("ownerId", "granted", "createdAt", "updatedAt")
DEFAULT_CONTAINER_KEY = "_relations"


class _SchemaModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


# ============================================================================
# Field and Table Models
# ============================================================================


class SortSpec(_SchemaModel):
    """Ordering applied to the rows of a 1:N relation."""

    field: str
    order: str = "ASC"

    @field_validator("order")
    @classmethod
    def _normalize_order(cls, value: str) -> str:
        value = value.upper()
        if value not in ("ASC", "DESC"):
            raise ValueError(f"sort order must be ASC or DESC, got {value!r}")
        return value


class FieldDefinition(_SchemaModel):
    """Definition of one column.

    Example:
        >>> f = FieldDefinition(type="integer", relation="Person", arrayName="memberOf")
        >>> f.is_relation
        True
    """

    type: str = "varchar"
    renderer: str | None = None
    is_primary: bool = Field(default=False, alias="isPrimary")
    relation: str | None = None  # target table name (N:1 foreign key)
    foreign_key: str | None = Field(default=None, alias="foreignKey")
    array_name: str | None = Field(default=None, alias="arrayName")
    label: str | None = None
    relationship_strength: str = Field(default="Weak", alias="relationshipStrength")
    default_sort: list[SortSpec] = Field(default_factory=list, alias="defaultSort")
    expression: str | None = Field(default=None, alias="as")  # SQL expression
    calculate: Any = None  # computed by application code

    @field_validator("default_sort", mode="before")
    @classmethod
    def _wrap_single_sort(cls, value):
        if value is None:
            return []
        if isinstance(value, dict):
            return [value]
        return value

    @property
    def is_relation(self) -> bool:
        """True if this field is a foreign key to another table."""
        return bool(self.relation)

    @property
    def is_calculated(self) -> bool:
        """True if the value is computed rather than stored (``as`` or ``calculate``)."""
        return bool(self.expression or self.calculate)


class TableDefinition(_SchemaModel):
    """Definition of one table.

    ``fields`` is ``None`` only for malformed schema files; relation
    derivation reports that as a ``SchemaIntegrityError``.
    """

    fields: dict[str, FieldDefinition] | None = None
    display_fields: list[str] | None = Field(default=None, alias="displayFields")
    label: str | None = None

    @field_validator("display_fields", mode="before")
    @classmethod
    def _wrap_single_display_field(cls, value):
        if isinstance(value, str):
            return [value]
        return value


class SchemaDefinition(_SchemaModel):
    """Complete table-definition set loaded from a schema file.

    Example:
        >>> schema = SchemaDefinition(tables={"Tag": {"fields": {"name": {}}}})
        >>> list(schema.tables)
        ['Tag']
    """

    tables: dict[str, TableDefinition] = Field(default_factory=dict)
    renderer: dict[str, str] = Field(default_factory=dict)
    system_fields: tuple[str, ...] = Field(default=DEFAULT_SYSTEM_FIELDS, alias="systemFields")
    default_display_fields: tuple[str, ...] = Field(default=("name",), alias="defaultDisplayFields")
    relation_container_key: str = Field(default=DEFAULT_CONTAINER_KEY, alias="relationContainerKey")
