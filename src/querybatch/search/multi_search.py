import asyncio
import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import httpx

from src.querybatch.configuration import Configuration
from src.querybatch.errors import (
    BatchRequestFailed,
    RequestFailed,
    ResponseFormatError,
)
from src.querybatch.results.collection import Collection
from src.querybatch.search.retry import RetryExecutor
from src.querybatch.search.search import Search, decode_body
from src.querybatch.utils.searchlogger import log_exchange

logger = logging.getLogger(__name__)

# An errored sub-search yields an empty list instead of a Collection
BatchResult = Union[Collection, List[Any]]


class MultiSearch:
    """
    Batch of searches executed with one `_msearch` call.

    Responses carry no request identifier, so results are matched to
    searches purely by position: `results[i]` always belongs to
    `searches[i]`. A sub-search reporting an error yields an empty list
    in its slot and does not affect its neighbours; a failure of the
    batch call itself raises `BatchRequestFailed`.
    """

    def __init__(
        self,
        searches: Optional[Iterable[Search]] = None,
        config: Optional[Configuration] = None,
        **options: Any,
    ):
        self.config = config or Configuration.from_credentials()
        self.options: Dict[str, Any] = options
        self.searches: List[Search] = []

        self.response = None
        self.json: Optional[Dict[str, Any]] = None
        self._results: Optional[List[BatchResult]] = None
        self._lock = asyncio.Lock()

        for search in searches or []:
            self.add(search)

    def add(self, search: Search) -> "MultiSearch":
        """Append a search unless this very instance is already in the batch."""
        if not any(existing is search for existing in self.searches):
            self.searches.append(search)
        return self

    def __iter__(self) -> Iterator[Search]:
        return iter(self.searches)

    def __len__(self) -> int:
        return len(self.searches)

    def __contains__(self, search: object) -> bool:
        return any(existing is search for existing in self.searches)

    @property
    def indices(self) -> List[List[str]]:
        return [search.indices for search in self.searches]

    @property
    def url(self) -> str:
        return f"{self.config.url}/_msearch"

    @property
    def params(self) -> str:
        return f"?{httpx.QueryParams(self.options)}" if self.options else ""

    def to_payload(self) -> str:
        """
        Newline-delimited header/body pairs, one pair per search, in batch
        order, terminated by an empty line.
        """
        lines: List[str] = []
        for search in self.searches:
            # Search-all entries get an empty `{}` header
            header = {"index": search.indices[0]} if search.indices else {}
            lines.append(json.dumps(header))
            lines.append(search.to_json())
        lines.append("")
        return "\n".join(lines)

    def to_curl(self) -> str:
        separator = f"{self.params}&" if self.params else "?"
        return f"curl -X POST \"{self.url}{separator}pretty=true\" -d '{self.to_payload()}'"

    async def perform(self) -> "MultiSearch":
        url = self.url + self.params
        payload = self.to_payload()
        executor = RetryExecutor(
            max_retries=self.config.max_retries,
            raise_on_failure=self.config.raise_on_failure,
        )

        self.response = None
        self.json = None
        if not self.searches:
            self._results = []
            return self

        try:
            try:
                self.response = await executor.execute(
                    lambda: self.config.transport.post(url, payload)
                )
            except Exception as e:
                body = e.body if isinstance(e, RequestFailed) else str(e)
                raise BatchRequestFailed(self.to_curl(), body) from e

            if self.response is None:
                error = executor.last_error
                body = error.body if isinstance(error, RequestFailed) else str(error)
                logger.error("[REQUEST FAILED] %s", self.to_curl())
                raise BatchRequestFailed(self.to_curl(), body)

            self.json = decode_body(self.response.body)
            self._results = self._demultiplex(self.json)
            return self

        finally:
            log_exchange(
                self.config.logger,
                "_msearch",
                self.indices,
                self.to_curl(),
                self.response,
                self.json,
            )

    def _demultiplex(self, envelope: Any) -> List[BatchResult]:
        responses = envelope.get("responses") if isinstance(envelope, dict) else None
        if not isinstance(responses, list):
            raise ResponseFormatError("Multi search response has no `responses` array")
        if len(responses) != len(self.searches):
            raise ResponseFormatError(
                f"Multi search returned {len(responses)} responses "
                f"for {len(self.searches)} searches"
            )

        results: List[BatchResult] = []
        for position, (search, response) in enumerate(zip(self.searches, responses)):
            if not isinstance(response, dict):
                raise ResponseFormatError(f"Response {position} in batch is not an object")
            if "error" in response:
                logger.warning(
                    "Search %d in batch failed | indices=%s error=%s",
                    position,
                    search.indices,
                    response["error"],
                )
                results.append([])
            else:
                results.append(Collection(response, search.options))
        return results

    async def results(self) -> List[BatchResult]:
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
