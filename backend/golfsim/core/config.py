from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


MismatchPolicy = Literal["observe", "complete"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DB_URL: str = "sqlite:///./golfsim.db"

    JWT_SECRET: str = "CHANGE_ME_DEV_SECRET"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 24 * 7  # 7 days

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Session tracking
    STATUS_TICK_SECONDS: float = 30.0
    ACTIVE_TICK_SECONDS: float = 60.0
    DEFAULT_SESSION_MINUTES: int = 60
    GUEST_NAME: str = "Guest User"

    # observe: log only, complete: end the session when the bay reports free
    BAY_MISMATCH_POLICY: MismatchPolicy = "observe"
    SEED_DEMO_BAYS: bool = True

    # Accounts allowed to push bay status changes
    STAFF_EMAILS: str = "frontdesk@evergreen.golf"

    LOG_LEVEL: str = "INFO"

    def cors_list(self) -> list[str]:
        return [x.strip() for x in self.CORS_ORIGINS.split(",") if x.strip()]

    def staff_list(self) -> list[str]:
        return [x.strip().lower() for x in self.STAFF_EMAILS.split(",") if x.strip()]


settings = Settings()
