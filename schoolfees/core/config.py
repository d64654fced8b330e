from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")

    service_name: str = Field("schoolfees", alias="SERVICE_NAME")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Safaricom Daraja (M-PESA C2B)
    mpesa_environment: str = Field("sandbox", alias="MPESA_ENV")
    mpesa_consumer_key: Optional[str] = Field(None, alias="MPESA_CONSUMER_KEY")
    mpesa_consumer_secret: Optional[str] = Field(None, alias="MPESA_CONSUMER_SECRET")
    mpesa_callback_base_url: Optional[str] = Field(None, alias="MPESA_CALLBACK_BASE_URL")
    mpesa_timeout_seconds: float = Field(30.0, alias="MPESA_TIMEOUT_SECONDS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
