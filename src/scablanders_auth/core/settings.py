"""Application settings and configuration.

This module defines all configuration options for the Scablanders auth service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Scablanders Auth", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Nonce storage; the in-process store is used when no Redis URL is set
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    nonce_key_prefix: str = Field(default="nonce:", alias="NONCE_KEY_PREFIX")
    nonce_ttl_seconds: int = Field(default=300, alias="NONCE_TTL_SECONDS")
    message_max_age_seconds: int = Field(default=300, alias="MESSAGE_MAX_AGE_SECONDS")

    # Session tokens
    session_ttl_seconds: int = Field(default=60 * 60 * 24, alias="SESSION_TTL_SECONDS")
    session_cookie_name: str = Field(default="CF_ACCESS_TOKEN", alias="SESSION_COOKIE_NAME")
    session_cookie_secure: bool = Field(default=True, alias="SESSION_COOKIE_SECURE")
    session_secret_key: str | None = Field(default=None, alias="SESSION_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Sign-In-With-Ethereum challenge fields
    siwe_domain: str = Field(default="scablanders.game", alias="SIWE_DOMAIN")
    siwe_uri: str = Field(default="https://scablanders.game", alias="SIWE_URI")
    siwe_chain_id: int = Field(default=1, alias="SIWE_CHAIN_ID")
    siwe_statement: str = Field(
        default="Welcome to Scablanders! Sign in to access the harsh world of the Scablands.",
        alias="SIWE_STATEMENT",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def session_signing_enabled(self) -> bool:
        """Return True when session tokens carry an HMAC signature."""
        return bool(self.session_secret_key)


settings = Settings()
