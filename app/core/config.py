from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from typing import List
import json


class Settings(BaseSettings):
    # Project Info
    PROJECT_NAME: str = "Invoicing API"
    API_PREFIX: str = "/api"
    API_VERSION: str = "1.0.0"

    # Database
    DATABASE_URL: str

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
    ALLOWED_HOSTS: str = ""

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Monitoring (Optional - Add to .env for production)
    SENTRY_DSN: str = ""

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT: str = "10/minute"

    # Lifecycle change log
    CHANGE_LOG_ENABLED: bool = True

    # Admin bootstrap
    DEFAULT_ADMIN_EMAIL: str = "admin@example.com"
    DEFAULT_ADMIN_PASSWORD: str = ""

    @field_validator("ENVIRONMENT")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return value.lower().strip()

    @classmethod
    def _parse_host_list(cls, value) -> List[str]:
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return []
            if raw.startswith("["):
                try:
                    parsed = json.loads(raw)
                    if isinstance(parsed, list):
                        return [str(host).strip() for host in parsed if str(host).strip()]
                except json.JSONDecodeError as exc:
                    raise ValueError("ALLOWED_HOSTS must be valid JSON or comma-separated hosts") from exc
            return [host.strip() for host in raw.split(",") if host.strip()]
        if isinstance(value, list):
            return [str(host).strip() for host in value if str(host).strip()]
        return value

    @field_validator("ALLOWED_HOSTS")
    @classmethod
    def normalize_allowed_hosts(cls, value: str) -> str:
        return ",".join(cls._parse_host_list(value))

    @model_validator(mode="after")
    def validate_production_secrets(self):
        if self.ENVIRONMENT == "production":
            normalized_secret = (self.SECRET_KEY or "").strip()
            if len(normalized_secret) < 32 or "your-secret-key-here" in normalized_secret.lower():
                raise ValueError("SECRET_KEY must be at least 32 chars and not use placeholders in production")
        return self

    @property
    def allowed_hosts(self) -> List[str]:
        return self._parse_host_list(self.ALLOWED_HOSTS)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
