import math
from typing import Any, Dict, Iterator, List, Optional, Union
from urllib.parse import unquote

from src.querybatch.results.item import Item

META_KEYS = ("_score", "_type", "_index", "_version", "sort", "highlight", "_explanation")


class Collection:
    """
    Lazy, restartable sequence of documents from one search response.

    Wraps the already-decoded response body; documents are built from
    `hits.hits` on first access and kept. Never re-fetches or pages.
    """

    def __init__(self, response: Dict[str, Any], options: Optional[Dict[str, Any]] = None):
        self.response = response or {}
        self.options = dict(options or {})

        hits = self.response.get("hits") or {}
        self.total = self._parse_total(hits.get("total"))
        self.max_score = hits.get("max_score")
        self.facets = self.response.get("facets")
        self.time = self.response.get("took")

        self._hits: List[Dict[str, Any]] = hits.get("hits") or []
        self._results: Optional[List[Item]] = None

    @classmethod
    def empty(cls, options: Optional[Dict[str, Any]] = None) -> "Collection":
        return cls({"hits": {"total": 0, "hits": []}}, options)

    @staticmethod
    def _parse_total(total: Any) -> int:
        # Newer servers report {"value": n, "relation": "eq"}
        if isinstance(total, dict):
            return int(total.get("value", 0))
        return int(total or 0)

    @staticmethod
    def _parse_fields(fields: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        for name, value in (fields or {}).items():
            # "fields" values come back as single-element lists
            if isinstance(value, list) and len(value) == 1:
                value = value[0]
            document[name] = value
        return document

    def _build(self, hit: Dict[str, Any]) -> Item:
        if "_source" in hit:
            document = dict(hit.get("_source") or {})
        else:
            document = self._parse_fields(hit.get("fields"))

        document["id"] = hit.get("_id")
        for key in META_KEYS:
            document[key] = hit.get(key)
        if isinstance(document["_type"], str):
            document["_type"] = unquote(document["_type"])

        return Item(document)

    @property
    def results(self) -> List[Item]:
        if self._results is None:
            self._results = [self._build(hit) for hit in self._hits]
        return self._results

    def __iter__(self) -> Iterator[Item]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self._hits)

    def __bool__(self) -> bool:
        return bool(self._hits)

    def __getitem__(self, index: Union[int, slice]) -> Union[Item, List[Item]]:
        return self.results[index]

    def first(self) -> Optional[Item]:
        return self.results[0] if self._hits else None

    def to_list(self) -> List[Item]:
        return list(self.results)

    # Pagination metadata, computed from the request's size/from

    @property
    def per_page(self) -> int:
        return int(self.options.get("per_page") or self.options.get("size") or 10)

    @property
    def current_page(self) -> int:
        if self.options.get("page"):
            return int(self.options["page"])
        offset = int(self.options.get("from") or 0)
        return offset // self.per_page + 1

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.per_page)

    @property
    def previous_page(self) -> Optional[int]:
        return self.current_page - 1 if self.current_page > 1 else None

    @property
    def next_page(self) -> Optional[int]:
        return self.current_page + 1 if self.current_page < self.total_pages else None

    def __repr__(self) -> str:
        return f"<Collection total={self.total} size={len(self)}>"
