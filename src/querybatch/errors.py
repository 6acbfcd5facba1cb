from typing import Optional


class QueryBatchError(Exception):
    """Base class for every error raised by querybatch."""


class TransportError(QueryBatchError):
    """Connection-level failure while talking to the search service."""


class RequestFailed(QueryBatchError):
    """
    The search service answered with a non-success HTTP status.

    Raised inside the retry loop for every failed attempt, and re-raised
    to the caller once retries are exhausted when the configuration asks
    for it.
    """

    def __init__(self, status: int, body: Optional[str] = None):
        self.status = status
        self.body = body
        super().__init__(f"{status} > {body}")


class SearchRequestFailed(RequestFailed):
    """Single search failed after all retries."""


class BatchRequestFailed(QueryBatchError):
    """The `_msearch` call itself failed after all retries."""

    def __init__(self, curl: str, body: Optional[str] = None):
        self.curl = curl
        self.body = body
        super().__init__(f"[REQUEST FAILED] {curl}\n{body or ''}")


class ResponseFormatError(QueryBatchError):
    """Response envelope could not be decoded into results."""
