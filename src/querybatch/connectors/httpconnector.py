import httpx
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel

from src.querybatch.errors import TransportError

logger = logging.getLogger(__name__)


class TransportResponse(BaseModel):
    """Raw HTTP answer handed back to the search layer."""
    status: int
    body: str = ""

    @property
    def success(self) -> bool:
        return 200 <= self.status < 300

    @property
    def failure(self) -> bool:
        return not self.success


class HttpConnector:
    """
    Infrastructure Layer - Search HTTP Connector

    Responsible only for:
    - Creating reusable async HTTP connection
    - Managing client lifecycle
    - Posting request bodies and returning status + body

    Does NOT:
    - Retry failed calls
    - Decode JSON
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize HttpConnector.

        Args:
            config (Dict):
                Required keys:
                    timeout_seconds (int): HTTP timeout in seconds
                Optional keys:
                    headers (dict): Extra default headers
        """
        self.timeout = config["timeout_seconds"]
        self.headers: Dict[str, str] = {
            "Content-Type": "application/json",
            **config.get("headers", {}),
        }
        self._client: Optional[httpx.AsyncClient] = None

        logger.info("HttpConnector initialized | timeout=%ss", self.timeout)

    async def __call__(self) -> httpx.AsyncClient:
        """
        Callable version of connect().

        Allows writing:
            client = await connector()
        """
        return await self.connect()

    async def __aenter__(self) -> "HttpConnector":
        await self.connect()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def connect(self) -> httpx.AsyncClient:
        """
        Creates (if needed) and returns async HTTP client.

        Returns:
            httpx.AsyncClient: Active HTTP client instance
        """
        if self._client is None:
            logger.info("Creating new HTTP client session for search service")
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
            )

        else:
            logger.debug("Reusing existing search HTTP client session")

        return self._client

    async def post(self, url: str, body: str) -> TransportResponse:
        """
        POST a raw body to an absolute URL.

        Non-success statuses are returned, not raised; connection-level
        failures surface as TransportError.
        """
        client = await self.connect()
        try:
            response = await client.post(url, content=body.encode("utf-8"))
        except httpx.TransportError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        return TransportResponse(status=response.status_code, body=response.text)

    async def close(self):
        """
        Gracefully closes HTTP connection.

        Safe to call multiple times.
        """
        if self._client:

            logger.info("Closing search HTTP client session")
            await self._client.aclose()
            self._client = None

        else:
            logger.debug("Close called but no HTTP client session exists")
