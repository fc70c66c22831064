"""Pydantic models for derived relation graphs.

- ManyToOneRelation: a foreign key declared on the table itself
- OneToManyRelation: a foreign key declared on another table pointing here
- RelationGraph: both directions for one table
"""

from pydantic import BaseModel, Field

from crudable.config.models import SortSpec


class ManyToOneRelation(BaseModel):
    """N:1 relation from a field of the table to a target table.

    Example:
        >>> rel = ManyToOneRelation(field_name="idPerson", target_table="Person", foreign_key="id")
        >>> rel.relationship_strength
        'Weak'
    """

    field_name: str
    target_table: str
    foreign_key: str  # field on the target table
    array_name: str | None = None  # inverse collection name, if declared
    relationship_strength: str = "Weak"


class OneToManyRelation(BaseModel):
    """1:N relation: rows of ``related_table`` whose ``field_name`` points here."""

    array_name: str
    related_table: str
    foreign_key: str  # field on this table the related rows point to
    field_name: str  # foreign key field on the related table
    relationship_strength: str = "Weak"
    default_sort: list[SortSpec] = Field(default_factory=list)

    @property
    def order_by(self) -> str | None:
        """ORDER BY clause for ``default_sort``, or None when unsorted."""
        if not self.default_sort:
            return None
        return ", ".join(f"{s.field} {s.order}" for s in self.default_sort)


class RelationGraph(BaseModel):
    """Relations of one table in both directions."""

    table: str
    relations_n1: dict[str, ManyToOneRelation] = Field(default_factory=dict)
    relations_1n: dict[str, OneToManyRelation] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True if the table has no relation in either direction."""
        return not self.relations_n1 and not self.relations_1n
