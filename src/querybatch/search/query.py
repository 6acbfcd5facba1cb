import json
from typing import Any, Callable, Dict, List, Optional, Union

QueryBlock = Callable[["Query"], Any]


class Query:
    """
    Query tree builder.

    A configuration function receives the builder and calls one of the
    leaf methods on it; the last call wins:

        Query(lambda q: q.string("title:foo")).to_dict()
        # {"query_string": {"query": "title:foo"}}
    """

    def __init__(self, block: Optional[QueryBlock] = None):
        self._value: Dict[str, Any] = {}
        if block is not None:
            block(self)

    def string(self, value: str, **options: Any) -> "Query":
        self._value = {"query_string": {"query": value, **options}}
        return self

    def term(self, field: str, value: Any) -> "Query":
        self._value = {"term": {field: value}}
        return self

    def terms(self, field: str, values: List[Any], **options: Any) -> "Query":
        self._value = {"terms": {field: list(values), **options}}
        return self

    def all(self) -> "Query":
        self._value = {"match_all": {}}
        return self

    def ids(self, values: Union[str, List[str]], type: Optional[str] = None) -> "Query":
        if isinstance(values, str):
            values = [values]
        body: Dict[str, Any] = {"values": list(values)}
        if type:
            body["type"] = type
        self._value = {"ids": body}
        return self

    def boolean(self, block: Callable[["BooleanQuery"], Any], **options: Any) -> "Query":
        self._value = {"bool": BooleanQuery(block, **options).to_dict()}
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self._value

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


class BooleanQuery:
    """Accumulates `must`, `should` and `must_not` clauses in call order."""

    def __init__(self, block: Optional[Callable[["BooleanQuery"], Any]] = None, **options: Any):
        self.options = options
        self._value: Dict[str, List[Dict[str, Any]]] = {}
        if block is not None:
            block(self)

    def _add(self, occurrence: str, block: QueryBlock) -> "BooleanQuery":
        self._value.setdefault(occurrence, []).append(Query(block).to_dict())
        return self

    def must(self, block: QueryBlock) -> "BooleanQuery":
        return self._add("must", block)

    def should(self, block: QueryBlock) -> "BooleanQuery":
        return self._add("should", block)

    def must_not(self, block: QueryBlock) -> "BooleanQuery":
        return self._add("must_not", block)

    def to_dict(self) -> Dict[str, Any]:
        return {**self._value, **self.options}
