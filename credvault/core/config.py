# credvault/core/config.py
import os
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
DOTENV = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env")


class Settings(BaseSettings):
    APP_NAME: str = "credvault"
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str

    OTP_LENGTH: int = 4
    OTP_TTL_MINUTES: int = 10
    # Echo the fresh OTP in the signup response body alongside email delivery.
    RETURN_OTP_IN_SIGNUP: bool = True

    STORE_TIMEOUT_SECONDS: float = 5.0
    NOTIFIER_TIMEOUT_SECONDS: float = 15.0

    SMTP_SERVER: str
    SMTP_PORT: int
    SMTP_USER: str
    SMTP_PASSWORD: str

    ALLOWED_HOSTS: List[str] = ["*"]
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=DOTENV,
        env_ignore_empty=True,
        extra="ignore"
    )


settings = Settings()
