import json
from typing import Any, Callable, Dict, List, Optional, Union

from src.querybatch.search.filter import Filter
from src.querybatch.search.query import Query, QueryBlock


class Facet:
    """
    Facet definition builder.

    `options` are facet-level settings (`global`, `facet_filter`, ...)
    merged into the definition produced by the builder method:

        Facet("tags", {"global": True}, lambda f: f.terms("tags")).to_dict()
        # {"tags": {"terms": {"field": "tags", "size": 10, "all_terms": False},
        #           "global": True}}
    """

    def __init__(
        self,
        name: str,
        options: Optional[Dict[str, Any]] = None,
        block: Optional[Callable[["Facet"], Any]] = None,
    ):
        self.name = name
        self.options = dict(options or {})
        self._value: Dict[str, Any] = {}
        if block is not None:
            block(self)

    def terms(
        self,
        field: Union[str, List[str]],
        size: int = 10,
        all_terms: bool = False,
        **options: Any,
    ) -> "Facet":
        key = "field" if isinstance(field, str) else "fields"
        value = field if isinstance(field, str) else list(field)
        self._value = {
            "terms": {key: value, "size": size, "all_terms": all_terms, **options}
        }
        return self

    def date(self, field: str, interval: str = "day", **options: Any) -> "Facet":
        self._value = {
            "date_histogram": {"field": field, "interval": interval, **options}
        }
        return self

    def range(self, field: str, ranges: List[Dict[str, Any]], **options: Any) -> "Facet":
        self._value = {"range": {"field": field, "ranges": list(ranges), **options}}
        return self

    def histogram(self, field: str, **options: Any) -> "Facet":
        self._value = {"histogram": {"field": field, **options}}
        return self

    def statistical(self, field: str, **options: Any) -> "Facet":
        self._value = {"statistical": {"field": field, **options}}
        return self

    def terms_stats(self, key_field: str, value_field: str, **options: Any) -> "Facet":
        self._value = {
            "terms_stats": {"key_field": key_field, "value_field": value_field, **options}
        }
        return self

    def query(self, block: QueryBlock) -> "Facet":
        self._value = {"query": Query(block).to_dict()}
        return self

    def filter(self, type: str, body: Optional[Any] = None, **fields: Any) -> "Facet":
        self._value = {"filter": Filter(type, body, **fields).to_dict()}
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {self.name: {**self._value, **self.options}}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))
