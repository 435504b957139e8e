from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./chat.sqlite"
    DB_ECHO: bool = False

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    USER_SERVICE_URL: str = "http://user-service:3002"
    USER_SERVICE_TIMEOUT: float = 5.0

    CORS_ORIGINS: list[str] = ["*"]

    WS_HEARTBEAT_SECONDS: int = 30
    PRESENCE_BROADCAST_ON_DISCONNECT: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 3003
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
