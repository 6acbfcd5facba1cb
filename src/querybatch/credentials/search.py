from typing import Any, Dict, Optional
from .base import CredentialProvider
from src.querybatch.credentials.localsettings.searchconfig import SearchConfig


class SearchCredentials(CredentialProvider):
    """
    Provides search service connection / retry / logging values
    in a clean & controlled way.
    """

    def __init__(self, config: Optional[SearchConfig] = None):
        self.config = config or SearchConfig()

    def get_credentials(self) -> Dict[str, Any]:
        return {
            "url": self.config.url.rstrip("/"),
            "timeout_seconds": self.config.timeout_seconds,
            "max_retries": self.config.max_retries,
            "raise_on_failure": self.config.raise_on_failure,
            "log_enabled": self.config.log_enabled,
            "log_level": self.config.log_level,
        }
