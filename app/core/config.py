from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from typing import List


class Settings(BaseSettings):
    # Project Info
    PROJECT_NAME: str = "Storefront Pricing API"
    API_V1_STR: str = "/api/v1"

    # Database
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
    ]

    # Email
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    EMAILS_FROM_EMAIL: str = ""
    EMAILS_FROM_NAME: str = "Storefront"
    EMAILS_FROM_ORDERS: str = ""

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # Monitoring (Optional - Add to .env for production)
    SENTRY_DSN: str = ""

    # Celery & Redis (Task Queue)
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    # Admin Security
    ADMIN_API_KEY: str = "dev-admin-key"

    # Pricing
    FREE_SHIPPING_THRESHOLD: float = 999.0
    SHIPPING_FEE: float = 99.0
    MIN_CHECKOUT_AMOUNT: float = 1.0

    # Storefront client
    STOREFRONT_API_URL: str = "http://localhost:8000/api/v1"
    CLIENT_TIMEOUT_SECONDS: float = 10.0

    @field_validator("ENVIRONMENT")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return value.lower().strip()

    @field_validator("FREE_SHIPPING_THRESHOLD", "SHIPPING_FEE", "MIN_CHECKOUT_AMOUNT")
    @classmethod
    def validate_non_negative_amount(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Pricing amounts cannot be negative")
        return value

    @model_validator(mode="after")
    def validate_production_admin_key(self):
        if self.ENVIRONMENT == "production":
            normalized_key = (self.ADMIN_API_KEY or "").strip()
            if len(normalized_key) < 32 or normalized_key == "dev-admin-key":
                raise ValueError("ADMIN_API_KEY must be at least 32 chars and not the dev default in production")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
