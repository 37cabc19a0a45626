"""Application configuration."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Environment variables will be loaded and validated using Pydantic.
    """

    app_name: str = "Scrapegate"
    version: str = "2.0.0"
    api_prefix: str = "/api/v1"
    DEBUG: bool = False

    # CORS Settings
    cors_origins: list[str] = ["*"]  # Default to allow all in development
    cors_allow_credentials: bool = False

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT: str = "100/15minutes"
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Response cache
    CACHE_BACKEND: str = Field(default="memory", pattern="^(memory|redis)$")
    CACHE_TTL_SECONDS: int = Field(default=300, ge=0)
    CACHE_MAX_ENTRIES: int = Field(default=1024, ge=1)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    UPSTREAM_USER_AGENT: str = (
        "Mozilla/5.0 (Linux; Android 10; K) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/137.0.0.0 Mobile Safari/537.36"
    )

    # Job polling
    POLL_INTERVAL_SECONDS: float = Field(default=1.0, ge=0)
    POLL_MAX_ATTEMPTS: int = Field(default=60, ge=1)
    POLL_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Gemini (OpenAI-compatible endpoint)
    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @model_validator(mode="after")
    def validate_origins(self) -> "Settings":
        """Validate CORS origins."""
        if self.cors_origins == ["*"] and self.cors_allow_credentials:
            # Wildcard origins cannot be combined with credentials
            self.cors_origins = [
                "http://localhost",
                "http://localhost:8000",
                "http://localhost:3000",
            ]
        return self

    @model_validator(mode="after")
    def use_test_configs_for_testing(self) -> "Settings":
        """Keep tests away from shared backends."""
        import os

        if os.getenv("TESTING") == "true":
            test_redis_url = os.getenv("TEST_REDIS_URL")
            if test_redis_url:
                self.REDIS_URL = test_redis_url
            elif "/0" in self.REDIS_URL:
                # Switch from database 0 to database 1 for tests
                self.REDIS_URL = self.REDIS_URL.replace("/0", "/1")
        return self


# Create settings instance
settings = Settings()
