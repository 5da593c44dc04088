# backend/coffeevan/config.py

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/sqlite/coffeevan.db"
    redis_url: Optional[str] = None

    stripe_secret_key: Optional[str] = None
    currency: str = "gbp"
    demo_mode: bool = False

    admin_token: Optional[str] = None
    log_level: str = "INFO"

    # Collection slots
    opening_time: str = "10:45"
    closing_time: str = "15:30"
    slot_step_minutes: int = 15
    lead_time_minutes: int = 15
    days_to_scan: int = 30
    max_offered_dates: int = 8
    allowed_weekdays: list[int] = [3, 4, 5, 6]  # Thu..Sun, Monday = 0

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
