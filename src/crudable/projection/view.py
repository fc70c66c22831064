"""Read-only relation projection over loaded records.

A loaded record carries its resolved relations under one reserved
container key (``_relations`` by default)::

    {"id": 1, "name": "A", "_relations": {"tracks": [{"id": 10, "title": "T1"}]}}

``project()`` wraps it so relations read like ordinary keys::

    view = project(record)
    view["tracks"][0]["title"]   # 'T1'
    list(view)                   # ['id', 'name', 'tracks']

Lookup precedence for a key: the record's own field (unless it is the
container key), then the relation payload, projected on access.  When the
container key holds anything other than a mapping it is a plain column:
it stays readable under its own name and relation traversal is off for
that record.
"""

from collections.abc import Iterator, KeysView, Mapping
from typing import Any

from crudable.config.models import DEFAULT_CONTAINER_KEY

_MISSING = object()


def project(value: Any, container_key: str = DEFAULT_CONTAINER_KEY) -> Any:
    """Project *value* recursively.

    - mapping: ``ProjectedRecord`` over it
    - list or tuple: list of projected elements
    - anything else: returned unchanged

    Example:
        >>> project(42)
        42
        >>> project(None) is None
        True
    """
    if isinstance(value, ProjectedRecord):
        return value
    if isinstance(value, Mapping):
        return ProjectedRecord(value, container_key)
    if isinstance(value, (list, tuple)):
        return [project(item, container_key) for item in value]
    return value


class ProjectedRecord(Mapping):
    """Mapping view over one record and its relation payload.

    Never copies or mutates the wrapped record.  Nested values are
    projected each time they are read.

    Args:
        record: Loaded record mapping.
        container_key: Reserved key holding the relation payload.
    """

    __slots__ = ("_record", "_container_key")

    def __init__(self, record: Mapping, container_key: str = DEFAULT_CONTAINER_KEY) -> None:
        self._record = record
        self._container_key = container_key

    @property
    def record(self) -> Mapping:
        """The wrapped record, unchanged."""
        return self._record

    @property
    def container_key(self) -> str:
        return self._container_key

    @property
    def relations_enabled(self) -> bool:
        """True if the container key holds a relation payload mapping."""
        return isinstance(self._record.get(self._container_key), Mapping)

    def _payload(self) -> Mapping:
        payload = self._record.get(self._container_key)
        return payload if isinstance(payload, Mapping) else {}

    # ------------------------------------------------------------------
    # Capability set
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Value of *key* by read precedence, projected; *default* if absent."""
        value = self._lookup(key)
        if value is _MISSING:
            return default
        return project(value, self._container_key)

    def has(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def keys(self) -> KeysView:
        """Own keys (container key only when it is a column), then payload keys."""
        return KeysView(self)

    def _lookup(self, key: str) -> Any:
        record = self._record
        if key in record:
            if key != self._container_key or not self.relations_enabled:
                return record[key]
            return _MISSING
        return self._payload().get(key, _MISSING)

    # ------------------------------------------------------------------
    # Mapping protocol
    # ------------------------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            raise KeyError(key)
        return project(value, self._container_key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __iter__(self) -> Iterator[str]:
        traverse = self.relations_enabled
        for key in self._record:
            if key == self._container_key and traverse:
                continue
            yield key
        if traverse:
            for key in self._payload():
                if key not in self._record:
                    yield key

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"ProjectedRecord({dict(self._record)!r})"


def transform_api_response(response: Mapping, container_key: str = DEFAULT_CONTAINER_KEY) -> dict:
    """Shallow copy of an API response with its ``data`` entry projected.

    Example:
        body = transform_api_response({"success": True, "data": [row1, row2]})
        body["data"][0]["tracks"]
    """
    result = dict(response)
    if "data" in result:
        result["data"] = project(result["data"], container_key)
    return result
