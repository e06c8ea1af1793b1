from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    # A full SQLAlchemy URL wins over the POSTGRES_* parts (tests use sqlite)
    database_url: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "marketplace"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    base_url: str = "http://localhost:8000"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Payments
    payment_provider: str = "razorpay"
    payment_currency: str = "INR"
    payment_timeout_seconds: float = 10.0
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    stripe_secret_key: str = ""
    stripe_publishable_key: str = ""
    payment_webhook_secret: Optional[str] = None

    # Email (Brevo)
    brevo_api_key: Optional[str] = None
    mail_from: str = "no-reply@marketplace.local"
    store_name: str = "Marketplace"

    @property
    def sqlalchemy_url(self):
        if self.database_url:
            return self.database_url

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


@lru_cache
def get_settings() -> Settings:
    return Settings()
