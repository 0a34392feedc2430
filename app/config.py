# app/config.py
from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    RDS_ENDPOINT: str
    DB_PASSWORD: str
    DB_USER: str = "root"
    DB_NAME: str = "V2NCanaryDB"
    DB_PORT: int = 3306
    DB_ENGINE: Literal["mysql", "postgresql"] = "mysql"
    PORT: int = 3000
    CONNECT_TIMEOUT_SECONDS: float = 10.0
    TRANSPORT_CHECK: bool = True
    TRANSPORT_TIMEOUT_SECONDS: float = 5.0
    DNS_TIMEOUT_SECONDS: float = 5.0
    LOG_LEVEL: str = "INFO"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def describe(self) -> dict[str, object]:
        """Startup banner values; never includes the password."""
        return {
            "RDS_ENDPOINT": self.RDS_ENDPOINT,
            "DB_ENGINE": self.DB_ENGINE,
            "DB_PORT": self.DB_PORT,
            "DB_NAME": self.DB_NAME,
            "DB_USER": self.DB_USER,
            "PORT": self.PORT,
            "TRANSPORT_CHECK": self.TRANSPORT_CHECK,
        }
