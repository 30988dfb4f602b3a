"""
Configuration management for the RSS service.

Supports multiple environments (local, development, production) and three
backing store variants (in-memory mock, local Redis server, managed REST Redis).

Responsibility: Centralized configuration and environment management
"""

from enum import Enum
from typing import Optional, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Environment(str, Enum):
    """Deployment environment"""
    LOCAL = "local"
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class StoreBackend(str, Enum):
    """Backing store variants"""
    AUTO = "auto"
    MEMORY = "memory"
    REDIS = "redis"
    UPSTASH = "upstash"


class AppConfig(BaseSettings):
    """Application configuration"""

    # Environment
    environment: Environment = Field(default=Environment.LOCAL)
    debug: bool = Field(default=False)

    # Application metadata
    app_name: str = Field(default="rss-service")

    # Logging
    log_level: str = Field(default="INFO")

    # API settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=4001, alias="PORT")
    public_url: Optional[str] = Field(
        default=None,
        description="Externally visible base URL used for feed self links"
    )

    # Bearer token for the write API
    api_secret: Optional[str] = Field(default=None, alias="API_SECRET")

    # CORS settings
    allowed_origins: str = Field(
        default="*",
        alias="ALLOWED_ORIGINS",
        description="Comma-separated list of allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    @property
    def cors_origins(self) -> List[str]:
        """Parse allowed origins; a bare '*' allows everything"""
        origins = [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        if not origins or "*" in origins:
            return ["*"]
        return origins


class StoreConfig(BaseSettings):
    """Backing store configuration"""

    backend: StoreBackend = Field(default=StoreBackend.AUTO, alias="STORE_BACKEND")
    use_redis_mock: bool = Field(default=False, alias="USE_REDIS_MOCK")

    # Local / linked Redis server
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    redis_host: Optional[str] = Field(default=None, alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_db: int = Field(default=0, alias="REDIS_DB")
    redis_password: Optional[str] = Field(default=None, alias="REDIS_PASSWORD")

    # Managed REST Redis
    upstash_url: Optional[str] = Field(default=None, alias="UPSTASH_REDIS_REST_URL")
    upstash_token: Optional[str] = Field(default=None, alias="UPSTASH_REDIS_REST_TOKEN")

    # Connection behaviour
    max_retries: int = Field(default=5, ge=0)
    retry_cap_seconds: float = Field(default=3.0, gt=0)
    retry_base_seconds: float = Field(default=0.1, gt=0)
    socket_timeout: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    @property
    def has_upstash_credentials(self) -> bool:
        return bool(self.upstash_url and self.upstash_token)

    def resolve_backend(self) -> StoreBackend:
        """
        Resolve the effective backend.

        Explicit choices win. AUTO picks the managed REST store when its
        credentials are present, then the in-memory mock when requested,
        then a Redis server.
        """
        if self.backend != StoreBackend.AUTO:
            return self.backend
        if self.has_upstash_credentials:
            return StoreBackend.UPSTASH
        if self.use_redis_mock:
            return StoreBackend.MEMORY
        return StoreBackend.REDIS

    @property
    def redis_connection_string(self) -> str:
        """Build Redis connection string (REDIS_URL wins over host/port)"""
        if self.redis_url:
            return self.redis_url
        auth = f":{self.redis_password}@" if self.redis_password else ""
        host = self.redis_host or "localhost"
        return f"redis://{auth}{host}:{self.redis_port}/{self.redis_db}"


class CacheConfig(BaseSettings):
    """Rendered feed cache configuration"""

    # Also the Cache-Control max-age sent with every feed response
    ttl_seconds: int = Field(default=600, ge=1)  # 10 minutes

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
        extra="ignore"
    )


class RateLimitConfig(BaseSettings):
    """Public endpoint rate limiting"""

    enabled: bool = Field(default=True)
    max_requests: int = Field(default=100, ge=1)
    window_seconds: int = Field(default=300, ge=1)  # 5 minutes

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
        extra="ignore"
    )


class ProtectionConfig(BaseSettings):
    """Security headers and request timeout"""

    request_timeout_seconds: float = Field(default=30.0, gt=0)
    hsts: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="PROTECTION_",
        case_sensitive=False,
        extra="ignore"
    )


class Settings(BaseSettings):
    """
    Global settings container.

    Loads configuration from:
    1. Environment variables
    2. .env file
    3. Default values

    Example:
        # Local development with the in-memory store
        settings = Settings(
            app=AppConfig(api_secret="dev-secret"),
            store=StoreConfig(backend=StoreBackend.MEMORY)
        )
    """

    app: AppConfig = Field(default_factory=AppConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    protection: ProtectionConfig = Field(default_factory=ProtectionConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("app")
    @classmethod
    def normalize_log_level(cls, v: AppConfig) -> AppConfig:
        v.log_level = v.log_level.upper()
        return v

    @property
    def redis_url(self) -> Optional[str]:
        """Redis connection URL for rate limiting (only with a Redis server backend)"""
        if self.store.resolve_backend() == StoreBackend.REDIS:
            return self.store.redis_connection_string
        return None

    def validate_runtime(self) -> None:
        """
        Check the settings required to serve traffic.

        Raises:
            ConfigurationError: API secret missing or managed store credentials incomplete
        """
        if not self.app.api_secret:
            raise ConfigurationError("Missing required environment variable: API_SECRET")

        if self.store.resolve_backend() == StoreBackend.UPSTASH and not self.store.has_upstash_credentials:
            raise ConfigurationError(
                "UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN are required "
                "for the upstash store backend"
            )


# Global settings instance
settings = Settings()
