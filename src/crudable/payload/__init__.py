"""Relation payload loading through a ``DatabaseClient``.

Usage:
    >>> from crudable.payload import RelationPayloadLoader
"""

from crudable.payload.loader import RelationPayloadLoader

__all__ = ["RelationPayloadLoader"]
