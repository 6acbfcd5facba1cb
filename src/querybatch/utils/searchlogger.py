import json
import logging
from typing import Any, Optional


class SearchLogger:
    """
    Request/response logger for search traffic.

    Writes human readable blocks (a curl command for every request,
    status and timing for every response) to the standard `logging`
    machinery. Response bodies are only written when `level` is "debug".
    """

    def __init__(self, level: str = "info", name: str = "querybatch.requests"):
        self.level = level
        self._logger = logging.getLogger(name)

    def log_request(self, action: str, indices: Optional[Any] = None, curl: str = ""):
        content = f"# [{action}]"
        if indices:
            content += f" ({indices!r})"
        content += "\n#\n"
        content += curl
        self._logger.info(content)

    def log_response(self, status: Any, took: Any = None, body: str = ""):
        content = f"# [{status}]"
        if took not in (None, "N/A"):
            content += f" ({took} msec)"
        if body and body.strip():
            content += "\n#\n"
            content += "\n".join(f"# {line}" for line in body.splitlines())
        self._logger.info(content)


def log_exchange(
    search_logger: Optional[Any],
    action: str,
    indices: Any,
    curl: str,
    response: Optional[Any] = None,
    decoded: Optional[Any] = None,
) -> None:
    """
    Hand one request/response exchange to the logger collaborator.

    Whatever is missing (no response, undecoded body) is reported as
    "N/A". Does nothing when no logger is configured.
    """
    if search_logger is None:
        return

    search_logger.log_request(action, indices, curl)

    status = getattr(response, "status", None)
    took = decoded.get("took") if isinstance(decoded, dict) else None

    body = ""
    if getattr(search_logger, "level", None) == "debug":
        if decoded is not None:
            body = json.dumps(decoded, indent=2)
        elif response is not None:
            body = response.body

    search_logger.log_response(
        status if status is not None else "N/A",
        took if took is not None else "N/A",
        body,
    )
