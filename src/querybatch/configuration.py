from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.querybatch.connectors.httpconnector import HttpConnector
from src.querybatch.credentials.search import SearchCredentials
from src.querybatch.utils.searchlogger import SearchLogger


class Configuration(BaseModel):
    """
    Explicit configuration value shared by searches and batches.

    Holds the service base URL, the transport collaborator (anything
    with an async `post(url, body)`), the optional request logger and
    the retry policy settings.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    url: str = Field(default="http://localhost:9200", description="Search service base URL")
    transport: Any = Field(default=None, description="Object exposing async post(url, body)")
    logger: Optional[Any] = Field(default=None, description="log_request/log_response collaborator")
    max_retries: int = Field(default=5, ge=0, description="Retries after the first attempt")
    raise_on_failure: bool = Field(default=False, description="Re-raise once retries are exhausted")

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_credentials(
        cls,
        credentials: Optional[Dict[str, Any]] = None,
        transport: Any = None,
        logger: Optional[Any] = None,
    ) -> "Configuration":
        """
        Build a configuration from a credentials dict.

        Falls back to `SearchCredentials` (environment / .env) when no
        dict is given, and creates the HTTP connector and request logger
        when they are not supplied.
        """
        credentials = credentials or SearchCredentials().get_credentials()

        if transport is None:
            transport = HttpConnector(config=credentials)

        if logger is None and credentials.get("log_enabled"):
            logger = SearchLogger(level=credentials.get("log_level", "info"))

        return cls(
            url=credentials["url"],
            transport=transport,
            logger=logger,
            max_retries=credentials.get("max_retries", 5),
            raise_on_failure=credentials.get("raise_on_failure", False),
        )
