"""
Redis and rate limiting settings.
"""
import logging
import os

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class RedisSettings(BaseSettings):
    """
    Defines settings for the Redis connection backing the auth rate limiter.

    Security Note:
        - REDIS_PASSWORD must be set in production to prevent unauthorized access
          (OWASP A05:2021 - Security Misconfiguration).
        - Use `rediss://` (REDIS_SSL=True) when Redis is reached over an
          untrusted network.
    Availability Note:
        - RATE_LIMIT_FAILURE_POLICY decides what happens when Redis is down:
          'fail-open' lets requests through with a permissive synthetic quota,
          'fail-closed' throttles them.
    """
    REDIS_HOST: str = ""
    REDIS_PORT: int = Field(ge=1, le=65535, default=6379)
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SSL: bool = False
    REDIS_URL: str = ""

    TEST_MODE: bool = False

    # Rate limiting settings
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_AUTH: str = "10/minute"  # Sliding window for /api/auth/*
    RATE_LIMIT_KEY_PREFIX: str = "ratelimit:auth"
    RATE_LIMIT_FAILURE_POLICY: str = Field(
        default="fail-open",
        pattern="^(fail-open|fail-closed)$"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("REDIS_URL", mode="before")
    @classmethod
    def assemble_redis_url(cls, v: str | None, info: ValidationInfo) -> str:
        """
        Assembles the Redis connection URL if not provided explicitly.

        An empty REDIS_HOST means no Redis is configured and the rate limiter
        falls back to its in-process store, so the URL stays empty.

        Args:
            v: Explicitly provided URL or None.
            info: Validation context with other field values.

        Returns:
            Assembled or provided Redis URL.
        """
        if v:
            return v

        values = info.data
        if not values.get("REDIS_HOST"):
            return ""
        protocol = "rediss" if values.get("REDIS_SSL") else "redis"
        redis_password = values.get("REDIS_PASSWORD")
        secret = redis_password.get_secret_value() if redis_password else ""
        password = f":{secret}@" if secret else ""

        url = f"{protocol}://{password}{values.get('REDIS_HOST')}:{values.get('REDIS_PORT')}/0"
        logger.debug("Assembled REDIS_URL (password masked for security).")
        return url

    @field_validator("REDIS_PASSWORD")
    @classmethod
    def validate_redis_password(cls, value: SecretStr, info: ValidationInfo) -> SecretStr:
        """
        Ensures REDIS_PASSWORD is set for staging/production when Redis is used.

        Raises:
            ValueError: If password is not set in staging/production.
        """
        app_env = info.data.get('APP_ENV') or os.getenv('APP_ENV', 'development')
        uses_redis = bool(info.data.get('REDIS_HOST'))
        if uses_redis and app_env in ['staging', 'production'] and not value.get_secret_value():
            logger.error(f"REDIS_PASSWORD must be set in {app_env} environment.")
            raise ValueError('REDIS_PASSWORD must be set in staging/production environments')
        return value

    @field_validator("RATE_LIMIT_AUTH")
    @classmethod
    def validate_rate_limit_format(cls, value: str) -> str:
        """
        Validates the format of rate limit strings (e.g., '10/minute').

        Raises:
            ValueError: If format is invalid.
        """
        try:
            count, period = value.split('/')
            if not count.isdigit() or int(count) <= 0:
                raise ValueError("Rate limit count must be a positive integer.")
            if period not in ('second', 'minute', 'hour', 'day'):
                raise ValueError("Rate limit period must be second, minute, "
                                 "hour, or day.")
            return value
        except (ValueError, AttributeError) as e:
            logger.error(f"Invalid rate limit format: {value}. Error: {str(e)}")
            raise ValueError(f"Invalid rate limit format: {value}. "
                             f"Must be 'count/period'.")
