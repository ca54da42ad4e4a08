from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",   # ✅ ignore unknown keys in .env
    )

    DATABASE_URL: str = "sqlite+aiosqlite:///./webinarpro.db"

    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    JWT_ACCESS_MINUTES: int = 60
    JWT_REFRESH_DAYS: int = 14
    JWT_RESET_MINUTES: int = 30

    # Public URL of the storefront (used in gateway return urls + emails)
    APP_URL: str = "http://localhost:3000"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Payment gateway (Cashfree PG)
    CASHFREE_APP_ID: str = ""
    CASHFREE_SECRET_KEY: str = ""
    CASHFREE_ENV: str = "sandbox"  # sandbox | production
    CASHFREE_DEMO_MODE: bool = False
    CASHFREE_API_VERSION: str = "2023-08-01"
    CURRENCY: str = "INR"

    # SMTP (SSL)
    SMTP_HOST: str = "smtp.zoho.in"
    SMTP_PORT: int = 465
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    EMAIL_FROM: str = ""

    UPLOAD_DIR: str = "storage"
    UPLOAD_MAX_BYTES: int = 5 * 1024 * 1024

    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.CASHFREE_ENV == "production"

    @property
    def demo_mode(self) -> bool:
        return not self.CASHFREE_APP_ID or self.CASHFREE_DEMO_MODE

    @property
    def email_from(self) -> str:
        return self.EMAIL_FROM or f"WebinarPro <{self.SMTP_USER}>"


settings = Settings()


def get_settings() -> Settings:
    return settings
