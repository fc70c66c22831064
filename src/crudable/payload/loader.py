"""Relation payload loading.

Loads records through a ``DatabaseClient`` and attaches their resolved
relations under the schema's relation container key, ready for
``crudable.projection.project``.

Payload shape for one row::

    {
        "id": 1,
        "name": "Acme",
        "_table": "Organization",
        "_label": "Acme",
        "_relations": {
            "member": [{"id": 7, "role": "CEO", "_relations": {...}}],
        },
    }

- N:1 entries replace the foreign-key column they were loaded from, so
  the projected record exposes the related object under the field name.
- 1:N rows are ordered by the relation's ``defaultSort`` and carry their
  own N:1 payload, one level deep. The back-reference entry is the
  parent row itself, so it is never queried again.
- A ``can_read(table, row)`` predicate hides rows the caller may not see.

Usage:
    from crudable.payload import RelationPayloadLoader

    loader = RelationPayloadLoader(graph, adapter)
    row = await loader.load("Organization", 1)
    view = project(row)
"""

import logging
from collections.abc import Callable
from typing import Any

from crudable.adapters.base import DatabaseClient
from crudable.schema.graph import SchemaGraph
from crudable.schema.models import ManyToOneRelation, OneToManyRelation

logger = logging.getLogger(__name__)

CanRead = Callable[[str, dict], bool]

STRONG = "Strong"


class RelationPayloadLoader:
    """Load rows with their relation payload.

    Args:
        graph: Relation graph of the schema snapshot.
        client: Read-only database client.
        can_read: Optional permission predicate ``(table, row) -> bool``.
            Rows it rejects are left out (top-level rows load as ``None``).
    """

    def __init__(
        self,
        graph: SchemaGraph,
        client: DatabaseClient,
        can_read: CanRead | None = None,
    ) -> None:
        self.graph = graph
        self.client = client
        self.can_read = can_read
        self.container_key = graph.schema.relation_container_key

    def default_relations(self, table_name: str) -> list[str]:
        """Every N:1 relation plus every ``Strong`` 1:N relation of *table_name*."""
        relations = self.graph.relations_of(table_name)
        names = list(relations.relations_n1)
        names.extend(
            name
            for name, rel in relations.relations_1n.items()
            if rel.relationship_strength == STRONG
        )
        return names

    async def load(
        self,
        table_name: str,
        key: Any,
        relations: list[str] | None = None,
    ) -> dict | None:
        """Load one row by primary key with its relation payload.

        Args:
            table_name: Exact table name.
            key: Primary key value.
            relations: Relation names to load (default: ``default_relations``).

        Returns:
            Row dict with the container key, or None if the row does not
            exist or ``can_read`` rejects it.

        Raises:
            UnknownTableError: If the table is not in the schema.
            ValueError: If a requested relation name is unknown.
        """
        names = self._check_relations(table_name, relations)
        pk = self.graph.primary_key(table_name)
        rows = await self.client.select(table_name, "*", filters={pk: key})
        if not rows or not self._readable(table_name, rows[0]):
            logger.debug(f"{table_name} {pk}={key!r} not found or not readable")
            return None
        return await self._attach(table_name, rows[0], names)

    async def load_many(
        self,
        table_name: str,
        filters: dict[str, Any] | None = None,
        relations: list[str] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Load every matching row of *table_name* with its relation payload.

        Raises:
            UnknownTableError: If the table is not in the schema.
            ValueError: If a requested relation name is unknown.
        """
        names = self._check_relations(table_name, relations)
        rows = await self.client.select(table_name, "*", filters=filters, order_by=order_by)
        results = []
        for row in rows:
            if self._readable(table_name, row):
                results.append(await self._attach(table_name, row, names))
        logger.debug(f"Loaded {len(results)}/{len(rows)} {table_name} rows with {names}")
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_relations(self, table_name: str, relations: list[str] | None) -> list[str]:
        graph = self.graph.relations_of(table_name)
        if relations is None:
            return self.default_relations(table_name)
        unknown = [
            name
            for name in relations
            if name not in graph.relations_n1 and name not in graph.relations_1n
        ]
        if unknown:
            raise ValueError(f"Unknown relation(s) for {table_name}: {', '.join(unknown)}")
        return list(relations)

    def _readable(self, table_name: str, row: dict) -> bool:
        return self.can_read is None or self.can_read(table_name, row)

    def _decorate(self, table_name: str, row: dict) -> dict:
        """Copy of *row* tagged with ``_table`` and, when possible, ``_label``."""
        result = dict(row)
        result["_table"] = table_name
        values = [
            str(row[f])
            for f in self.graph.display_fields(table_name)
            if row.get(f) not in (None, "")
        ]
        if values:
            result["_label"] = " ".join(values)
        return result

    async def _attach(self, table_name: str, row: dict, names: list[str]) -> dict:
        graph = self.graph.relations_of(table_name)
        payload: dict[str, Any] = {}

        for name in names:
            n1 = graph.relations_n1.get(name)
            if n1 is not None:
                target = await self._load_target(n1, row.get(name))
                if target is not None:
                    payload[name] = target
            else:
                payload[name] = await self._load_children(graph.relations_1n[name], row)

        result = self._decorate(table_name, row)
        for name in payload:
            if name in graph.relations_n1:
                result.pop(name, None)
        result[self.container_key] = payload
        return result

    async def _load_target(self, relation: ManyToOneRelation, value: Any) -> dict | None:
        if value is None or value == "":
            return None
        rows = await self.client.select(
            relation.target_table, "*", filters={relation.foreign_key: value}
        )
        if not rows or not self._readable(relation.target_table, rows[0]):
            return None
        return self._decorate(relation.target_table, rows[0])

    async def _load_children(self, relation: OneToManyRelation, parent: dict) -> list[dict]:
        value = parent.get(relation.foreign_key)
        if value is None:
            return []
        rows = await self.client.select(
            relation.related_table,
            "*",
            filters={relation.field_name: value},
            order_by=relation.order_by,
        )
        nested = self.graph.relations_of(relation.related_table).relations_n1
        back = nested[relation.field_name]
        parent_payload = self._decorate(back.target_table, parent)

        children = []
        hidden = 0
        for row in rows:
            if not self._readable(relation.related_table, row):
                hidden += 1
                continue
            sub_payload: dict[str, Any] = {}
            for field_name, sub in nested.items():
                # Back-reference: the parent row is already loaded
                if field_name == relation.field_name:
                    sub_payload[field_name] = parent_payload
                    continue
                target = await self._load_target(sub, row.get(field_name))
                if target is not None:
                    sub_payload[field_name] = target

            child = self._decorate(relation.related_table, row)
            for field_name in sub_payload:
                child.pop(field_name, None)
            child[self.container_key] = sub_payload
            children.append(child)

        if hidden:
            logger.debug(f"{hidden} {relation.related_table} row(s) hidden from {relation.array_name}")
        return children
