"""Configuration using pydantic-settings."""

from pydantic_settings import BaseSettings


class CrawlerSettings(BaseSettings):
    """Crawler configuration."""

    timeout: float = 10.0
    user_agent: str = "adoc/0.1 (+https://github.com/adoc-crawler)"
    max_connections: int = 100
    max_keepalive_connections: int = 20

    concurrency: int = 5
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0

    allowed_host: str = "developer.apple.com"
    path_prefix: str = "/documentation"
    search_url: str = "https://developer.apple.com/search/"
    max_search_results: int = 10

    model_config = {"env_prefix": "ADOC_"}


settings = CrawlerSettings()
