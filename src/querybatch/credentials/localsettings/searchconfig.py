from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchConfig(BaseSettings):
    """
    Search service configuration.
    Loads from environment variables with SEARCH__ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEARCH__",
        env_file=[".env"],
        extra="ignore",
        case_sensitive=False,
    )

    # Core connection settings
    url: str = "http://localhost:9200"
    timeout_seconds: int = 30

    # Retry settings
    max_retries: int = 5
    raise_on_failure: bool = False

    # Request/response logging
    log_enabled: bool = False
    log_level: str = "info"
