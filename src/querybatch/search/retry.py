import logging
from typing import Awaitable, Callable, Optional

from src.querybatch.connectors.httpconnector import TransportResponse
from src.querybatch.errors import RequestFailed

logger = logging.getLogger(__name__)


class RetryExecutor:
    """
    Bounded retry around a single transport call.

    Non-success statuses and any exception raised by the transport are
    retried immediately, up to `max_retries` times after the first attempt.
    Once the budget is spent the last error is re-raised when
    `raise_on_failure` is set, otherwise `None` is returned.
    """

    def __init__(self, max_retries: int = 5, raise_on_failure: bool = False):
        self.max_retries = max_retries
        self.raise_on_failure = raise_on_failure
        self.attempts = 0
        self.last_error: Optional[Exception] = None

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    async def execute(
        self,
        call: Callable[[], Awaitable[TransportResponse]],
    ) -> Optional[TransportResponse]:
        self.attempts = 0
        self.last_error = None

        while True:
            self.attempts += 1
            try:
                response = await call()
                if response.failure:
                    raise RequestFailed(response.status, response.body)
                return response

            except Exception as e:
                self.last_error = e
                if self.attempts < self.max_attempts:
                    logger.warning(
                        "[ERROR] %s, retrying (%d)...", e, self.attempts
                    )
                    continue

                logger.error(
                    "[ERROR] Too many exceptions occured, giving up after %d attempts. "
                    "The HTTP response was: %s",
                    self.attempts,
                    e,
                )
                if self.raise_on_failure:
                    raise
                return None
