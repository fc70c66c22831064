"""Shared schema fixtures.

The sample schema models organizations, people and the junction table
between them, plus a relation-free ``Tag`` table and an ``Album`` /
``Track`` pair using the default array name.
"""

import copy

import pytest

from crudable.config.loader import parse_schema
from crudable.schema.graph import SchemaGraph

SYSTEM_FIELDS = {
    "ownerId": {"type": "integer"},
    "granted": {"type": "varchar"},
    "createdAt": {"type": "datetime"},
    "updatedAt": {"type": "datetime"},
}

SCHEMA_DATA = {
    "tables": {
        "Organization": {
            "displayFields": ["name"],
            "fields": {
                "id": {"type": "integer", "isPrimary": True},
                "name": {"type": "varchar"},
                "description": {"type": "text", "renderer": "markdown"},
                "url": {"type": "varchar", "renderer": "url"},
                "image": {"type": "varchar", "renderer": "image"},
                "active": {"type": "boolean"},
                **SYSTEM_FIELDS,
            },
        },
        "Person": {
            "displayFields": ["givenName", "familyName"],
            "fields": {
                "id": {"type": "integer", "isPrimary": True},
                "givenName": {"type": "varchar", "label": "Given name"},
                "familyName": {"type": "varchar", "label": "Family name"},
                "email": {"type": "varchar", "renderer": "email"},
                "telephone": {"type": "varchar", "renderer": "telephone"},
                "birthDate": {"type": "date"},
                **SYSTEM_FIELDS,
            },
        },
        "OrganizationPerson": {
            "fields": {
                "id": {"type": "integer", "isPrimary": True},
                "orgId": {
                    "type": "integer",
                    "relation": "Organization",
                    "arrayName": "member",
                    "relationshipStrength": "Strong",
                    "defaultSort": {"field": "position", "order": "asc"},
                },
                "idPerson": {"type": "integer", "relation": "Person", "arrayName": "memberOf"},
                "role": {"type": "varchar"},
                "position": {"type": "integer"},
                **SYSTEM_FIELDS,
            },
        },
        "Tag": {
            "fields": {
                "id": {"type": "integer", "isPrimary": True},
                "name": {"type": "varchar"},
            },
        },
        "Album": {
            "fields": {
                "id": {"type": "integer", "isPrimary": True},
                "name": {"type": "varchar"},
                "idOrganization": {"type": "integer", "relation": "Organization"},
            },
        },
        "Track": {
            "displayFields": "title",
            "fields": {
                "id": {"type": "integer", "isPrimary": True},
                "title": {"type": "varchar"},
                "idAlbum": {"type": "integer", "relation": "Album"},
            },
        },
    },
}


@pytest.fixture
def schema_data() -> dict:
    """Fresh deep copy of the sample schema mapping."""
    return copy.deepcopy(SCHEMA_DATA)


@pytest.fixture
def schema(schema_data):
    return parse_schema(schema_data)


@pytest.fixture
def graph(schema) -> SchemaGraph:
    return SchemaGraph(schema)
