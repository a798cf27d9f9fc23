from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List, Optional

DEFAULT_ALLOWED_ORIGINS = "http://localhost,http://localhost:80,http://localhost:8080,http://localhost:8000"

class ServerSettings(BaseSettings):
    """
    Process-level settings that are safe to read at import time (no required values).
    Values are automatically read from PHISHLABS_* environment variables or a .env file.
    """
    log_level: str = Field(default="INFO")

    # API settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8003)

    # Comma-separated CORS origins
    allowed_origins: str = Field(default=DEFAULT_ALLOWED_ORIGINS)

    @property
    def allowed_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    model_config = SettingsConfigDict(
        env_prefix="PHISHLABS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra='ignore',
        frozen=True,
    )

class Settings(ServerSettings):
    """
    Pydantic settings for the PhishLabs agent, including the upstream connection.
    """
    # PhishLabs connection
    api_base_url: str
    api_key: str = Field(repr=False)
    service_path: str
    timeout_seconds: int = Field(default=30, ge=5, le=300)

    # Validated but not applied by the submitter
    max_retries: int = Field(default=3, ge=0, le=10)
    rate_limit_per_minute: int = Field(default=10, ge=1, le=100)

    # Identification sent upstream
    source: str = Field(default="phishlabs-agent")
    user_agent: str = Field(default="phishlabs-agent/1.0")

    # Whether failure responses keep errorDetails when sent to clients
    expose_error_details: bool = Field(default=False)

    @field_validator('api_base_url', 'api_key', 'service_path')
    @classmethod
    def require_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator('api_base_url')
    @classmethod
    def check_base_url_scheme(cls, v: str) -> str:
        """The base URL must be absolute so the HTTP client can join the service path onto it."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("must start with http:// or https://")
        return v

# --- DEFERRED INITIALIZATION ---
_settings: Optional[Settings] = None

def get_settings() -> Settings:
    """
    Loads the settings on first use and returns the same instance afterwards.
    Raises pydantic.ValidationError when required values are missing or out of range.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
