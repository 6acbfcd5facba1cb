import asyncio
import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
from urllib.parse import quote

import httpx

from src.querybatch.configuration import Configuration
from src.querybatch.errors import RequestFailed, ResponseFormatError, SearchRequestFailed
from src.querybatch.results.collection import Collection
from src.querybatch.search.facet import Facet
from src.querybatch.search.filter import Filter
from src.querybatch.search.highlight import Highlight, HighlightField
from src.querybatch.search.query import Query
from src.querybatch.search.retry import RetryExecutor
from src.querybatch.search.sort import Sort
from src.querybatch.utils.searchlogger import log_exchange

logger = logging.getLogger(__name__)

URL_PARAMS = ("routing", "timeout")


def normalize_indices(indices: Union[None, str, Iterable[str]]) -> List[str]:
    """Flatten index names into an ordered, duplicate-free list."""
    if indices is None:
        return []
    if isinstance(indices, str):
        indices = [indices]

    result: List[str] = []
    for entry in indices:
        for name in str(entry).split(","):
            name = name.strip()
            if name and name not in result:
                result.append(name)
    return result


def decode_body(body: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"Response body is not valid JSON: {e}") from e


class Search:
    """
    Single search request.

    Built fluently; every builder method mutates the request and returns
    it, so calls can be chained or issued from a configuration function:

        s = Search("articles", config=config).query(lambda q: q.string("title:foo"))
        s.filter("term", tags="ruby").sort(lambda s: s.by("title", "desc")).size(5)

        Search("articles", config=config, block=lambda s: s.size(5))

    The query document is serialized on demand, so clauses added after
    construction are always included. `await s.results()` performs the
    request once and returns the memoized `Collection`.
    """

    def __init__(
        self,
        indices: Union[None, str, Iterable[str]] = None,
        config: Optional[Configuration] = None,
        block: Optional[Callable[["Search"], Any]] = None,
        **options: Any,
    ):
        if "from_" in options:
            options["from"] = options.pop("from_")

        self.indices = normalize_indices(indices)
        self.config = config or Configuration.from_credentials()
        self.options: Dict[str, Any] = options
        self.document_type: Optional[str] = options.get("type")

        self._query: Optional[Dict[str, Any]] = None
        self._filters: List[Filter] = []
        self._facets: Dict[str, Any] = {}
        self._sort: Optional[Sort] = None
        self._highlight: Optional[Highlight] = None
        self._size: Optional[int] = options.get("size")
        self._from: Optional[int] = options.get("from")
        self._fields: Optional[List[str]] = options.get("fields")
        self._version: bool = bool(options.get("version"))
        self._explain: bool = bool(options.get("explain"))
        self._group_field: Optional[str] = options.get("group_field")

        self.response = None
        self.json: Optional[Dict[str, Any]] = None
        self._results: Optional[Collection] = None
        self._lock = asyncio.Lock()

        if block is not None:
            block(self)

    # ---- Builder ----

    def query(self, value: Union[Dict[str, Any], Query, Callable[[Query], Any]]) -> "Search":
        if isinstance(value, Query):
            self._query = value.to_dict()
        elif callable(value):
            self._query = Query(value).to_dict()
        else:
            self._query = dict(value)
        return self

    def filter(self, type: str, body: Optional[Any] = None, **fields: Any) -> "Search":
        self._filters.append(Filter(type, body, **fields))
        return self

    def facet(
        self,
        name: str,
        value: Union[Dict[str, Any], Callable[[Facet], Any]],
        options: Optional[Dict[str, Any]] = None,
    ) -> "Search":
        if callable(value):
            self._facets.update(Facet(name, options, value).to_dict())
        else:
            self._facets[name] = {**value, **(options or {})}
        return self

    def sort(self, value: Union[Sort, List[Any], Callable[[Sort], Any]]) -> "Search":
        if self._sort is None:
            self._sort = Sort()
        if isinstance(value, Sort):
            self._sort.extend(value.to_list())
        elif isinstance(value, (list, tuple)):
            self._sort.extend(value)
        else:
            value(self._sort)
        return self

    def highlight(self, *fields: HighlightField, options: Optional[Dict[str, Any]] = None) -> "Search":
        self._highlight = Highlight(*fields, options=options)
        return self

    def size(self, value: int) -> "Search":
        self._size = value
        self.options["size"] = value
        return self

    def from_(self, value: int) -> "Search":
        self._from = value
        self.options["from"] = value
        return self

    def fields(self, *names: Union[str, List[str]]) -> "Search":
        flattened: List[str] = []
        for name in names:
            if isinstance(name, (list, tuple)):
                flattened.extend(name)
            else:
                flattened.append(name)
        self._fields = flattened
        self.options["fields"] = flattened
        return self

    def version(self, value: bool) -> "Search":
        self._version = bool(value)
        self.options["version"] = self._version
        return self

    def explain(self, value: bool) -> "Search":
        self._explain = bool(value)
        self.options["explain"] = self._explain
        return self

    def group_field(self, value: str) -> "Search":
        self._group_field = value
        self.options["group_field"] = value
        return self

    # ---- Inspection ----

    @property
    def filters(self) -> List[Filter]:
        return list(self._filters)

    @property
    def facets(self) -> Dict[str, Any]:
        return dict(self._facets)

    @property
    def sort_spec(self) -> Optional[Sort]:
        return self._sort

    @property
    def highlight_spec(self) -> Optional[Highlight]:
        return self._highlight

    # ---- Serialization ----

    def to_dict(self) -> Dict[str, Any]:
        request: Dict[str, Any] = {}
        if self._query is not None:
            request["query"] = self._query
        if self._sort:
            request["sort"] = self._sort.to_list()
        if self._facets:
            request["facets"] = self._facets
        if len(self._filters) == 1:
            request["filter"] = self._filters[0].to_dict()
        elif len(self._filters) > 1:
            request["filter"] = {"and": [f.to_dict() for f in self._filters]}
        if self._highlight is not None:
            request["highlight"] = self._highlight.to_dict()
        if self._size is not None:
            request["size"] = self._size
        if self._from is not None:
            request["from"] = self._from
        if self._fields:
            request["fields"] = self._fields
        if self._version:
            request["version"] = True
        if self._explain:
            request["explain"] = True
        if self._group_field:
            request["groupField"] = self._group_field
        return request

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @property
    def url(self) -> str:
        parts = [self.config.url]
        if self.indices:
            parts.append(",".join(self.indices))
        if self.document_type:
            parts.append(quote(str(self.document_type), safe=""))
        parts.append("_search")
        return "/".join(parts)

    @property
    def params(self) -> str:
        params = {
            key: self.options[key]
            for key in URL_PARAMS
            if self.options.get(key) is not None
        }
        return f"?{httpx.QueryParams(params)}" if params else ""

    def to_curl(self) -> str:
        separator = f"{self.params}&" if self.params else "?"
        return f"curl -X POST \"{self.url}{separator}pretty=true\" -d '{self.to_json()}'"

    # ---- Execution ----

    async def perform(self) -> "Search":
        """
        Execute the request once through the retry policy.

        An exhausted retry budget leaves an empty collection behind unless
        the configuration asks to raise. The logger collaborator is called
        exactly once, whatever the outcome.
        """
        url = self.url + self.params
        body = self.to_json()
        executor = RetryExecutor(
            max_retries=self.config.max_retries,
            raise_on_failure=self.config.raise_on_failure,
        )

        self.response = None
        self.json = None
        try:
            try:
                self.response = await executor.execute(
                    lambda: self.config.transport.post(url, body)
                )
            except RequestFailed as e:
                logger.error("[REQUEST FAILED] %s", self.to_curl())
                raise SearchRequestFailed(e.status, e.body) from e

            if self.response is None:
                self._results = Collection.empty(self.options)
                return self

            self.json = decode_body(self.response.body)
            self._results = Collection(self.json, self.options)
            return self

        finally:
            log_exchange(
                self.config.logger,
                "_search",
                self.indices,
                self.to_curl(),
                self.response,
                self.json,
            )

    async def results(self) -> Collection:
        if self._results is None:
            async with self._lock:
                if self._results is None:
                    await self.perform()
        return self._results

    def reset(self) -> None:
        """Drop memoized results so the next `results()` call re-executes."""
        self._results = None
        self.response = None
        self.json = None

    def __repr__(self) -> str:
        return f"<Search indices={self.indices!r} {self.to_json()}>"
