from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "AEO Audit"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Fetching
    fetch_timeout: float = 10.0
    max_redirects: int = 5
    max_body_bytes: int = 10 * 1024 * 1024
    user_agent: str = "Mozilla/5.0 (compatible; AEOAuditBot/1.0; +https://example.com/bot)"
    ssrf_dns_check: bool = True

    # Rendering (playwright)
    render_enabled: bool = True
    render_timeout: float = 30.0
    render_max_pages: int = 2

    # Google PageSpeed Insights
    google_pagespeed_api_key: str | None = None
    pagespeed_endpoint: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    pagespeed_strategy: str = "desktop"
    pagespeed_timeout: float = 30.0

    # Analysis
    analyzer_timeout: float = 60.0

    # Result cache
    cache_enabled: bool = True
    cache_ttl_seconds: int = 3600
    cache_max_entries: int = 256


settings = Settings()
