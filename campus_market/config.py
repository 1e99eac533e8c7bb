from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from decimal import Decimal
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # App
    APP_NAME: str = "Campus Market API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # Database - REQUIRED from environment
    DATABASE_URL: str = Field(
        ...,
        description="Database connection URL (REQUIRED)"
    )

    # Security - REQUIRED from environment
    SECRET_KEY: str = Field(
        ...,
        min_length=32,
        description="Secret key for JWT tokens (REQUIRED - minimum 32 characters)"
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Registration is limited to campus e-mail domains
    ENFORCE_ALLOWED_DOMAINS: bool = True

    # Wallet settlement
    WALLET_HOLD_DAYS: int = 7
    WALLET_CURRENCY: str = "PKR"
    DEFAULT_COMMISSION_RATE: float = 5.0  # %
    MIN_WITHDRAWAL_AMOUNT: Decimal = Decimal("1.00")

    # Background jobs
    SCHEDULER_ENABLED: bool = True
    HELD_FUNDS_SWEEP_MINUTES: int = 60

    # CORS
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ])

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_AUTH: str = "10/minute"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, value):
        """Ensure CORS origins env value always becomes a list of strings."""
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("[") and value.endswith("]"):
                import json
                return json.loads(value)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        if isinstance(value, (list, tuple)):
            return list(value)
        return value


settings = Settings()
