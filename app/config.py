import warnings
from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ── Known insecure default keys (must never be used in production) ──
_INSECURE_KEYS = {
    "change_this",
    "change_this_to_a_secure_random_string",
    "super-secret-jwt-token-with-at-least-32-characters-long",
    "secret",
}


class Settings(BaseSettings):
    APP_NAME: str = "BingIndex"
    APP_ENV: str = "development"
    API_V1_STR: str = "/api/v1"

    # ── Identity provider JWT (tokens are issued upstream, only verified here) ──
    SECRET_KEY: str = "change_this"
    ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # CORS
    BACKEND_CORS_ORIGINS: str = ""

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "bingindex"
    DATABASE_URL: Optional[str] = None  # overrides the POSTGRES_* settings

    # Connection pool
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_ECHO: bool = False
    SLOW_QUERY_THRESHOLD_MS: int = 500

    # Verification / health probes
    VERIFICATION_USER_AGENT: str = "BingIndex Verification/1.0"
    HEALTH_CHECK_USER_AGENT: str = "BingIndex Health Check"
    HEALTH_LOG_PAGE_SIZE: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate_production_security(self) -> "Settings":
        """Block startup if critical secrets are insecure in production / staging."""
        if self.APP_ENV in ("production", "staging"):
            if self.SECRET_KEY in _INSECURE_KEYS or len(self.SECRET_KEY) < 32:
                raise ValueError(
                    f"SECRET_KEY is insecure ('{self.SECRET_KEY[:8]}…'). "
                    "Set the identity provider's JWT secret (≥ 32 chars) in .env or environment."
                )
            if self.DATABASE_URL is None and self.POSTGRES_PASSWORD in ("postgres", ""):
                raise ValueError(
                    "POSTGRES_PASSWORD is set to default 'postgres'. "
                    "Set a strong password in .env or environment."
                )
            if self.BACKEND_CORS_ORIGINS == "":
                warnings.warn(
                    "BACKEND_CORS_ORIGINS is empty; only the built-in localhost origins are allowed.",
                    UserWarning,
                    stacklevel=2,
                )
        return self

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_SERVER}/{self.POSTGRES_DB}"
        )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_staging(self) -> bool:
        return self.APP_ENV == "staging"

settings = Settings()
