"""Relation graph derivation over a loaded schema.

Usage:
    >>> from crudable.schema import SchemaGraph, RelationGraph
"""

from crudable.schema.graph import SchemaGraph, default_array_name
from crudable.schema.models import ManyToOneRelation, OneToManyRelation, RelationGraph

__all__ = [
    "SchemaGraph",
    "default_array_name",
    "ManyToOneRelation",
    "OneToManyRelation",
    "RelationGraph",
]
