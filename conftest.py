import pytest
from unittest.mock import AsyncMock

from src.querybatch.configuration import Configuration
from src.querybatch.connectors.httpconnector import TransportResponse


@pytest.fixture
def make_config():
    """Build a Configuration around a mocked transport."""

    def _make(*responses, logger=None, **kwargs):
        transport = AsyncMock()
        if len(responses) == 1 and isinstance(responses[0], Exception):
            transport.post.side_effect = responses[0]
        elif len(responses) == 1:
            transport.post.return_value = responses[0]
        else:
            transport.post.side_effect = list(responses)
        return Configuration(
            url=kwargs.pop("url", "http://localhost:9200"),
            transport=transport,
            logger=logger,
            **kwargs,
        )

    return _make


@pytest.fixture
def ok():
    """Shortcut for a successful TransportResponse with the given body."""

    def _ok(body: str, status: int = 200) -> TransportResponse:
        return TransportResponse(status=status, body=body)

    return _ok
