"""
Application-specific settings.
"""
from typing import List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name, environment, logging
    and the public URLs the auth gateway is reachable under.

    Security Note:
        - NEXTAUTH_URL is the canonical public base URL of the site. It seeds both
          the origin allowlist used for POST validation and the CORS
          `Access-Control-Allow-Origin` header, so it must be set explicitly in
          production (OWASP A05:2021 - Security Misconfiguration).
        - VERCEL_URL is injected by the deployment platform without a scheme;
          it is allowlisted as `https://{VERCEL_URL}`.
    """
    PROJECT_NAME: str = "devflow-auth"
    VERSION: str = "0.1.0"
    APP_ENV: str = "development"
    DEBUG: bool = False

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    LOG_DIR: str = "logs"
    SERVICE_NAME: str = "auth-api"

    NEXTAUTH_URL: Optional[str] = None
    VERCEL_URL: Optional[str] = None
    ALLOWED_ORIGINS: Union[str, List[str]] = Field(default_factory=list)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_allowed_origins(cls, v: Union[str, List[str], None]) -> List[str]:
        """
        Splits a comma-separated string of origins into a list.

        Args:
            v: Input value as a string or list of origins.

        Returns:
            List of stripped, non-empty origin strings.
        """
        if v is None:
            return []
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()
