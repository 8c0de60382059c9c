"""
Application configuration loaded from environment variables and `.env`.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = Field(default="Travel Agency Booking API")
    ENVIRONMENT: str = Field(default="production")
    LOG_LEVEL: str = Field(default="INFO")

    # "mongo" or "memory"
    STORE_BACKEND: str = Field(default="mongo")
    MONGO_URI: str = Field(default="mongodb://localhost:27017/travel-agency")
    MONGO_DATABASE: str = Field(default="travel-agency")
    MONGO_TIMEOUT_MS: int = Field(default=5000)

    IMAGES_DIR: str = Field(default="images")
    MAX_IMAGE_SIZE: int = Field(default=10 * 1024 * 1024)
    PHONE_DEFAULT_REGION: str = Field(default="US")

    ALLOWED_ORIGINS_STR: str = Field(
        default=(
            "http://localhost:5500,http://127.0.0.1:5500,http://localhost:3000,"
            "http://localhost:8080,http://localhost:50000,http://127.0.0.1:5501"
        ),
        alias="ALLOWED_ORIGINS",
    )

    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3001)

    @computed_field
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS_STR.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
