"""Main application settings and configuration management.

This module composes all the application settings from the different modules
(app, redis, auth) into a single, accessible `Settings` class.

It loads settings from environment variables and .env files, validates them,
and provides a single `settings` object for use throughout the application.

Environment Support:
- Development: Uses .env, console logging
- Test: Uses .env.test, in-memory rate limit store
- Staging: Uses .env.staging
- Production: Uses .env.production, file log transports enabled
"""

import logging
import os
from pathlib import Path
from typing import List

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .auth import AuthSettings
from .redis import RedisSettings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

LOCALHOST_ORIGIN = "http://localhost:3000"


class Settings(AppSettings, RedisSettings, AuthSettings):
    """The main settings class that aggregates all application configurations.

    Usage:
        - Access settings via the singleton instance `settings` throughout the application.
        - Tests build their own instance (`Settings(APP_ENV="test", ...)`) and
          pass it to the factories that need it.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="allow"
    )

    def __init__(self, **kwargs):
        """Initialize settings with environment-specific configuration."""
        super().__init__(**kwargs)
        self._set_environment_defaults(self.APP_ENV)

    def _set_environment_defaults(self, env: str) -> None:
        """Set environment-specific default values.

        Args:
            env: Environment name
        """
        if env == "test":
            self.TEST_MODE = True

        if env == "development":
            self.DEBUG = True
            if "LOG_JSON" not in self.model_fields_set:
                self.LOG_JSON = False

        logger.info(f"Application running in {env} environment")
        logger.info(f"Rate limit store: {'redis' if self.uses_redis else 'memory'}")

    @property
    def uses_redis(self) -> bool:
        """Whether the rate limiter should talk to Redis."""
        return bool(self.REDIS_URL) and not self.TEST_MODE

    @property
    def base_url(self) -> str:
        """Public base URL used for CORS, falling back to the local dev server."""
        return self.NEXTAUTH_URL or LOCALHOST_ORIGIN

    def allowed_origins(self) -> List[str]:
        """Origins accepted on POST requests to the auth routes.

        Built from the configured base URL, the deployment platform URL,
        any extra ALLOWED_ORIGINS and the local dev server.
        """
        origins = [
            self.NEXTAUTH_URL,
            f"https://{self.VERCEL_URL}" if self.VERCEL_URL else None,
            *self.ALLOWED_ORIGINS,
            LOCALHOST_ORIGIN,
        ]
        seen = []
        for origin in origins:
            if origin and origin not in seen:
                seen.append(origin)
        return seen


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")

    env_files = {
        "development": ".env",
        "test": ".env.test",
        "staging": ".env.staging",
        "production": ".env.production"
    }

    env_file = env_files.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        settings_instance = Settings(_env_file=env_file)
    elif Path(".env").exists():
        logger.info(f"Loading environment configuration from .env (environment: {env})")
        settings_instance = Settings()
    else:
        logger.warning(f"No .env file found, using environment variables only (environment: {env})")
        settings_instance = Settings()

    return settings_instance


# Create a singleton instance of the settings to be used across the application.
settings = create_settings()
