"""Tests for relation payload loading.

Verifies that ``RelationPayloadLoader``:
- Loads every N:1 and Strong 1:N relation by default
- Replaces foreign-key columns with their loaded N:1 payload
- Orders 1:N rows by ``defaultSort`` and loads their N:1 one level deep
- Reuses the parent row as the back-reference payload
- Applies the ``can_read`` predicate
- Rejects unknown relation names before touching the database
"""

from unittest.mock import AsyncMock, call

import chevron
import pytest

from crudable.errors import UnknownTableError
from crudable.payload.loader import RelationPayloadLoader
from crudable.projection.view import project
from crudable.templates.synthesizer import TemplateSynthesizer

DATA = {
    "Organization": [
        {"id": 1, "name": "Acme", "ownerId": 3},
        {"id": 2, "name": "Globex", "ownerId": 3},
    ],
    "Person": [
        {"id": 7, "givenName": "Ada", "familyName": "Lovelace", "email": "ada@example.com"},
        {"id": 8, "givenName": "Alan", "familyName": "Turing", "email": None},
    ],
    "OrganizationPerson": [
        {"id": 100, "orgId": 1, "idPerson": 7, "role": "CTO", "position": 2},
        {"id": 101, "orgId": 1, "idPerson": 8, "role": "CEO", "position": 1},
        {"id": 102, "orgId": 2, "idPerson": 8, "role": "Advisor", "position": 1},
    ],
    "Album": [
        {"id": 50, "name": "Hits", "idOrganization": 1},
        {"id": 51, "name": "Demos", "idOrganization": None},
    ],
    "Track": [],
    "Tag": [],
}


async def fake_select(table, columns, filters=None, order_by=None):
    """In-memory stand-in for ``DatabaseClient.select``."""
    rows = [
        dict(row)
        for row in DATA[table]
        if all(row.get(k) == v for k, v in (filters or {}).items())
    ]
    if order_by:
        for term in reversed(order_by.split(",")):
            field, _, direction = term.strip().partition(" ")
            rows.sort(key=lambda r: r[field], reverse=direction.upper() == "DESC")
    return rows


@pytest.fixture
def client() -> AsyncMock:
    mock = AsyncMock()
    mock.select.side_effect = fake_select
    return mock


@pytest.fixture
def loader(graph, client) -> RelationPayloadLoader:
    return RelationPayloadLoader(graph, client)


# ============================================================================
# Test: default relation selection
# ============================================================================


class TestDefaultRelations:
    """Verify which relations load when none are requested."""

    def test_strong_one_to_many_only(self, loader):
        """'member' is Strong, 'albums' is Weak."""
        assert loader.default_relations("Organization") == ["member"]

    def test_every_many_to_one(self, loader):
        assert loader.default_relations("OrganizationPerson") == ["orgId", "idPerson"]

    def test_none_for_plain_table(self, loader):
        assert loader.default_relations("Tag") == []


# ============================================================================
# Test: load
# ============================================================================


class TestLoad:
    """Verify single-row loading."""

    async def test_tags_and_label(self, loader):
        row = await loader.load("Organization", 1)
        assert row["_table"] == "Organization"
        assert row["_label"] == "Acme"

    async def test_one_to_many_sorted(self, loader):
        row = await loader.load("Organization", 1)
        members = row["_relations"]["member"]
        assert [m["id"] for m in members] == [101, 100]
        assert all(m["_table"] == "OrganizationPerson" for m in members)

    async def test_one_to_many_query(self, loader, client):
        await loader.load("Organization", 1)
        assert call("OrganizationPerson", "*", filters={"orgId": 1}, order_by="position ASC") in (
            client.select.call_args_list
        )

    async def test_nested_many_to_one_loaded(self, loader):
        row = await loader.load("Organization", 1)
        first = row["_relations"]["member"][0]
        person = first["_relations"]["idPerson"]
        assert person["givenName"] == "Alan"
        assert person["_label"] == "Alan Turing"
        assert "idPerson" not in first

    async def test_back_reference_is_parent_row(self, loader, client):
        """Member rows point back at the already loaded organization."""
        row = await loader.load("Organization", 1)
        first = row["_relations"]["member"][0]
        assert "orgId" not in first
        assert first["_relations"]["orgId"]["name"] == "Acme"
        assert first["_relations"]["orgId"]["_table"] == "Organization"
        tables = [c.args[0] for c in client.select.call_args_list]
        assert tables.count("Organization") == 1

    async def test_back_reference_projected(self, loader):
        view = project(await loader.load("Organization", 1, relations=["albums"]))
        album = view["albums"][0]
        assert album["name"] == "Hits"
        assert album["idOrganization"]["name"] == "Acme"

    async def test_many_to_one_replaces_foreign_key(self, loader):
        row = await loader.load("OrganizationPerson", 100)
        assert "orgId" not in row
        assert "idPerson" not in row
        assert row["_relations"]["orgId"]["name"] == "Acme"
        assert row["_relations"]["idPerson"]["givenName"] == "Ada"

    async def test_projection_reads_relations(self, loader):
        view = project(await loader.load("Organization", 1))
        assert view["member"][0]["idPerson"]["familyName"] == "Turing"
        assert view["member"][0]["role"] == "CEO"
        assert "_relations" not in view

    async def test_missing_row(self, loader):
        assert await loader.load("Organization", 999) is None

    async def test_explicit_relations(self, loader):
        row = await loader.load("Organization", 1, relations=["albums"])
        assert list(row["_relations"]) == ["albums"]
        assert [a["name"] for a in row["_relations"]["albums"]] == ["Hits"]

    async def test_null_foreign_key_not_queried(self, loader, client):
        row = await loader.load("Album", 51)
        assert row["_relations"] == {}
        assert row["idOrganization"] is None
        tables = [c.args[0] for c in client.select.call_args_list]
        assert "Organization" not in tables

    async def test_unknown_relation(self, loader, client):
        with pytest.raises(ValueError, match="bogus"):
            await loader.load("Organization", 1, relations=["bogus"])
        client.select.assert_not_called()

    async def test_unknown_table(self, loader):
        with pytest.raises(UnknownTableError):
            await loader.load("Nope", 1)

    async def test_custom_container_key(self, schema_data, client):
        from crudable.config.loader import parse_schema
        from crudable.schema.graph import SchemaGraph

        schema_data["relationContainerKey"] = "rel"
        loader = RelationPayloadLoader(SchemaGraph(parse_schema(schema_data)), client)
        row = await loader.load("Organization", 1)
        assert "rel" in row
        assert project(row, "rel")["member"][0]["id"] == 101


# ============================================================================
# Test: permissions
# ============================================================================


class TestCanRead:
    """Verify the permission predicate."""

    async def test_hidden_top_level_row(self, graph, client):
        loader = RelationPayloadLoader(graph, client, can_read=lambda table, row: False)
        assert await loader.load("Organization", 1) is None

    async def test_hidden_related_rows(self, graph, client):
        def can_read(table, row):
            return not (table == "Person" and row["id"] == 8)

        loader = RelationPayloadLoader(graph, client, can_read=can_read)
        row = await loader.load("Organization", 1)
        ceo, cto = row["_relations"]["member"]
        # Unreadable N:1 target: foreign key stays, no payload entry
        assert ceo["idPerson"] == 8
        assert "idPerson" not in ceo["_relations"]
        assert cto["_relations"]["idPerson"]["givenName"] == "Ada"

    async def test_hidden_children(self, graph, client):
        def can_read(table, row):
            return not (table == "OrganizationPerson" and row["role"] == "CTO")

        loader = RelationPayloadLoader(graph, client, can_read=can_read)
        row = await loader.load("Organization", 1)
        assert [m["role"] for m in row["_relations"]["member"]] == ["CEO"]


# ============================================================================
# Test: load_many
# ============================================================================


class TestLoadMany:
    """Verify multi-row loading."""

    async def test_filters_and_order(self, loader, client):
        rows = await loader.load_many(
            "OrganizationPerson", filters={"idPerson": 8}, order_by="orgId DESC"
        )
        assert [r["id"] for r in rows] == [102, 101]
        assert rows[0]["_relations"]["orgId"]["name"] == "Globex"

    async def test_all_rows(self, loader):
        rows = await loader.load_many("Organization")
        assert [r["_label"] for r in rows] == ["Acme", "Globex"]
        assert len(rows[1]["_relations"]["member"]) == 1

    async def test_can_read_filters_rows(self, graph, client):
        loader = RelationPayloadLoader(graph, client, can_read=lambda t, r: r.get("id") != 2)
        rows = await loader.load_many("Organization", relations=[])
        assert [r["id"] for r in rows] == [1]
        assert rows[0]["_relations"] == {}


# ============================================================================
# Test: rendering loaded records
# ============================================================================


class TestRenderedTemplate:
    """Verify generated templates render loaded payloads correctly."""

    async def test_back_reference_cell_shows_parent(self, graph, loader):
        """The album's Organization cell shows Acme, not the album's own name."""
        row = await loader.load("Organization", 1, relations=["albums"])
        template = TemplateSynthesizer(graph).generate("Organization", "section", max_depth=1)

        html = chevron.render(template, {"rows": [project(row)]})

        assert 'data-relation="Organization">Acme</td>' in html
        assert 'data-relation="Organization">Hits</td>' not in html
        assert '<td data-field="name">Hits</td>' in html

    async def test_nested_many_to_one_cell(self, graph, loader):
        row = await loader.load("Organization", 1)
        template = TemplateSynthesizer(graph).generate("Organization", "section", max_depth=1)

        html = chevron.render(template, {"rows": [project(row)]})

        assert 'data-relation="Person">Alan Turing</td>' in html
        assert 'data-relation="Person">Ada Lovelace</td>' in html
