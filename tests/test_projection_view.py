"""Tests for the relation projection view.

Verifies that ``project()`` / ``ProjectedRecord``:
- Expose relation payload entries as ordinary keys
- Give own fields precedence over payload entries
- Treat a non-mapping value under the container key as a column
- Enumerate without the container key and without duplicates
- Project nested values lazily and never mutate the record
"""

import pytest

from crudable.projection.view import ProjectedRecord, project, transform_api_response


@pytest.fixture
def album() -> dict:
    return {
        "id": 1,
        "name": "A",
        "_relations": {
            "tracks": [{"id": 10, "title": "T1"}, {"id": 11, "title": "T2"}],
            "idArtist": {"id": 5, "name": "Band", "_relations": {"members": [{"name": "Ann"}]}},
        },
    }


# ============================================================================
# Test: scalar pass-through
# ============================================================================


class TestProjectScalars:
    """Verify non-mapping values pass through unchanged."""

    @pytest.mark.parametrize("value", [42, None, "text", 3.5, True])
    def test_scalars_unchanged(self, value):
        assert project(value) is value

    def test_list_projected_element_wise(self):
        result = project([{"a": 1}, 2, None])
        assert isinstance(result[0], ProjectedRecord)
        assert result[1:] == [2, None]

    def test_tuple_becomes_list(self):
        assert project(({"a": 1},))[0]["a"] == 1

    def test_already_projected_not_rewrapped(self, album):
        view = project(album)
        assert project(view) is view


# ============================================================================
# Test: read precedence
# ============================================================================


class TestReadPrecedence:
    """Verify own field > payload entry > missing."""

    def test_payload_array_readable(self, album):
        view = project(album)
        assert view["tracks"][0]["title"] == "T1"
        assert view.get("tracks")[1]["title"] == "T2"

    def test_payload_object_readable(self, album):
        view = project(album)
        assert view["idArtist"]["name"] == "Band"

    def test_nested_relations_projected(self, album):
        view = project(album)
        assert view["idArtist"]["members"][0]["name"] == "Ann"

    def test_own_field_wins(self, album):
        album["tracks"] = "own column"
        view = project(album)
        assert view["tracks"] == "own column"

    def test_missing_key(self, album):
        view = project(album)
        assert view.get("nope") is None
        assert view.get("nope", "dflt") == "dflt"
        assert not view.has("nope")
        with pytest.raises(KeyError):
            view["nope"]

    def test_container_key_hidden(self, album):
        view = project(album)
        assert not view.has("_relations")
        assert "_relations" not in view
        assert view.get("_relations") is None

    def test_has(self, album):
        view = project(album)
        assert view.has("id")
        assert view.has("tracks")
        assert "idArtist" in view


# ============================================================================
# Test: container key used as a scalar column
# ============================================================================


class TestScalarContainerKey:
    """Verify a scalar column sharing the container key name wins."""

    def test_scalar_wins(self):
        record = {"id": 1, "relations": "none", "tracks": "x"}
        view = project(record, container_key="relations")
        assert view["relations"] == "none"
        assert view.get("relations") == "none"
        assert not view.relations_enabled

    def test_no_flattening_when_scalar(self):
        """Other columns are plain columns; nothing comes from a payload."""
        record = {"id": 1, "_relations": "none"}
        view = project(record)
        assert view["_relations"] == "none"
        assert list(view) == ["id", "_relations"]

    def test_list_container_is_a_column(self):
        record = {"_relations": [{"a": 1}]}
        view = project(record)
        assert not view.relations_enabled
        assert view["_relations"][0]["a"] == 1
        assert not view.has("a")

    def test_reserved_name_column_with_default_key(self):
        """'relations' is an ordinary column when the container is '_relations'."""
        view = project({"relations": "none", "_relations": {"tracks": []}})
        assert view["relations"] == "none"
        assert view["tracks"] == []


# ============================================================================
# Test: enumeration
# ============================================================================


class TestEnumeration:
    """Verify key enumeration."""

    def test_keys_union_without_container(self, album):
        view = project(album)
        assert list(view.keys()) == ["id", "name", "tracks", "idArtist"]
        assert "_relations" not in view.keys()

    def test_no_duplicates(self, album):
        album["tracks"] = "own"
        view = project(album)
        keys = list(view)
        assert keys.count("tracks") == 1
        assert len(view) == len(keys)

    def test_dict_conversion(self, album):
        data = dict(project(album))
        assert set(data) == {"id", "name", "tracks", "idArtist"}

    def test_items(self, album):
        items = dict(project(album).items())
        assert items["name"] == "A"


# ============================================================================
# Test: read-only, lazy
# ============================================================================


class TestReadOnly:
    """Verify the view never copies or mutates the record."""

    def test_record_untouched(self, album):
        before = repr(album)
        view = project(album)
        list(view)
        view["tracks"][0]["title"]
        assert repr(album) == before

    def test_wraps_same_object(self, album):
        view = project(album)
        assert view.record is album
        assert view["idArtist"].record is album["_relations"]["idArtist"]

    def test_no_item_assignment(self, album):
        view = project(album)
        with pytest.raises(TypeError):
            view["name"] = "B"

    def test_sees_later_record_changes(self, album):
        """Values are read on access, not snapshotted."""
        view = project(album)
        album["_relations"]["extra"] = {"x": 1}
        assert view["extra"]["x"] == 1

    def test_cyclic_payload(self):
        """A self-referencing payload is only traversed as far as it is read."""
        record: dict = {"id": 1}
        record["_relations"] = {"self": record}
        view = project(record)
        assert view["self"]["self"]["self"]["id"] == 1


# ============================================================================
# Test: transform_api_response
# ============================================================================


class TestTransformApiResponse:
    """Verify API response projection."""

    def test_data_list_projected(self, album):
        body = {"success": True, "data": [album]}
        result = transform_api_response(body)
        assert result["success"] is True
        assert result["data"][0]["tracks"][0]["title"] == "T1"
        assert body["data"][0] is album

    def test_without_data(self):
        assert transform_api_response({"error": "x"}) == {"error": "x"}
