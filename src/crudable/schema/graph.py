"""Relation graph derivation over one schema snapshot.

Computes, for a table T:

- ``relations_n1``: every field on T declaring a ``relation``
- ``relations_1n``: every field F on any table S with ``F.relation == T``,
  keyed by ``F.arrayName`` (default: ``S.lower() + "s"``)

The derivation is a pure function of the table-definition mapping.
Results are memoized per table name on the graph instance; a reloaded
schema gets a new ``SchemaGraph``.

Usage:
    from crudable.config import load_schema
    from crudable.schema.graph import SchemaGraph

    graph = SchemaGraph(load_schema())
    rels = graph.relations_of("Organization")
    for name, rel in rels.relations_1n.items():
        print(name, "<-", f"{rel.related_table}.{rel.field_name}")
"""

import logging

from crudable.config.models import FieldDefinition, SchemaDefinition, TableDefinition
from crudable.errors import SchemaIntegrityError, UnknownTableError
from crudable.schema.models import ManyToOneRelation, OneToManyRelation, RelationGraph

logger = logging.getLogger(__name__)


def default_array_name(related_table: str) -> str:
    """Default inverse collection name for rows of *related_table*.

    Example:
        >>> default_array_name("OrganizationPerson")
        'organizationpersons'
    """
    return related_table.lower() + "s"


class SchemaGraph:
    """In-memory relation index over a ``SchemaDefinition``.

    Args:
        schema: Loaded schema snapshot.  Treated as immutable.

    Example:
        graph = SchemaGraph(schema)
        graph.relations_of("Person").relations_1n.keys()
        # dict_keys(['memberOf'])
    """

    def __init__(self, schema: SchemaDefinition) -> None:
        self.schema = schema
        self._cache: dict[str, RelationGraph] = {}

    # ------------------------------------------------------------------
    # Table lookup
    # ------------------------------------------------------------------

    def table_names(self) -> list[str]:
        """All table names in declaration order."""
        return list(self.schema.tables)

    def has_table(self, name: str) -> bool:
        return name in self.schema.tables

    def find_table(self, name: str) -> str | None:
        """Exact table name for *name*, ignoring case.  None if absent."""
        if name in self.schema.tables:
            return name
        lowered = name.lower()
        for table_name in self.schema.tables:
            if table_name.lower() == lowered:
                return table_name
        return None

    def table(self, name: str) -> TableDefinition:
        """Table definition for *name*.

        Raises:
            UnknownTableError: If the table is not in the schema.
        """
        try:
            return self.schema.tables[name]
        except KeyError:
            raise UnknownTableError(name, self.table_names()) from None

    def fields(self, name: str) -> dict[str, FieldDefinition]:
        """Declared fields of *name*, in declaration order.

        Raises:
            UnknownTableError: If the table is not in the schema.
            SchemaIntegrityError: If the table has no ``fields`` mapping.
        """
        table = self.table(name)
        if table.fields is None:
            raise SchemaIntegrityError(f"Table '{name}' has no 'fields' mapping")
        return table.fields

    def primary_key(self, name: str) -> str:
        """Primary key field of *name* (first ``isPrimary`` field, else ``"id"``)."""
        for field_name, field_def in self.fields(name).items():
            if field_def.is_primary:
                return field_name
        return "id"

    def display_fields(self, name: str) -> list[str]:
        """Fields composing the human-readable label of a *name* record.

        Uses the table's ``displayFields``, else the schema default,
        keeping only fields the table actually declares.
        """
        fields = self.fields(name)
        declared = self.table(name).display_fields
        candidates = declared if declared else list(self.schema.default_display_fields)
        return [f for f in candidates if f in fields]

    def is_system_field(self, field_name: str) -> bool:
        return field_name in self.schema.system_fields

    # ------------------------------------------------------------------
    # Relation derivation
    # ------------------------------------------------------------------

    def relations_of(self, table_name: str) -> RelationGraph:
        """Forward (N:1) and inverse (1:N) relations of *table_name*.

        Args:
            table_name: Exact table name.

        Returns:
            ``RelationGraph`` for the table.

        Raises:
            UnknownTableError: If the table is not in the schema.
            SchemaIntegrityError: If a table reachable during derivation
                has no ``fields`` mapping, or an N:1 relation targets a
                table that does not exist.
        """
        cached = self._cache.get(table_name)
        if cached is not None:
            return cached

        graph = RelationGraph(
            table=table_name,
            relations_n1=self._derive_n1(table_name),
            relations_1n=self._derive_1n(table_name),
        )
        self._cache[table_name] = graph
        return graph

    def _derive_n1(self, table_name: str) -> dict[str, ManyToOneRelation]:
        relations: dict[str, ManyToOneRelation] = {}
        for field_name, field_def in self.fields(table_name).items():
            if not field_def.relation:
                continue
            target = field_def.relation
            if target not in self.schema.tables:
                raise SchemaIntegrityError(
                    f"Field '{table_name}.{field_name}' references unknown table '{target}'"
                )
            relations[field_name] = ManyToOneRelation(
                field_name=field_name,
                target_table=target,
                foreign_key=field_def.foreign_key or self.primary_key(target),
                array_name=field_def.array_name,
                relationship_strength=field_def.relationship_strength,
            )
        return relations

    def _derive_1n(self, table_name: str) -> dict[str, OneToManyRelation]:
        # Validates the target itself even when nothing points at it
        self.fields(table_name)

        relations: dict[str, OneToManyRelation] = {}
        for other_name in self.schema.tables:
            for field_name, field_def in self.fields(other_name).items():
                if field_def.relation != table_name:
                    continue
                array_name = field_def.array_name or default_array_name(other_name)
                if array_name in relations:
                    previous = relations[array_name]
                    logger.warning(
                        f"Array name '{array_name}' on {table_name} is declared by both "
                        f"{previous.related_table}.{previous.field_name} and {other_name}.{field_name}; "
                        "keeping the latter"
                    )
                relations[array_name] = OneToManyRelation(
                    array_name=array_name,
                    related_table=other_name,
                    foreign_key=field_def.foreign_key or self.primary_key(table_name),
                    field_name=field_name,
                    relationship_strength=field_def.relationship_strength,
                    default_sort=list(field_def.default_sort),
                )
        return relations
