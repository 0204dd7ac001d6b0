from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from .letters import LetterSystem


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "development"
    database_url: str = "sqlite:///./numero.db"
    redis_url: str = "redis://localhost:6379/0"

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    cors_origins_raw: str = ""

    # Letter table used when a request does not name one.
    numerology_system: LetterSystem = LetterSystem.PYTHAGOREAN
    # Presentation toggles: when off, master flags read false and karmic debts null.
    show_master_numbers: bool = True
    show_karmic_debt: bool = True

    auspicious_dates_limit: int = 30
    auspicious_dates_min_score: int = 80
    # Seconds a finished auspicious-date job result stays readable from Redis.
    task_result_ttl_seconds: int = 600

    # Audit log lines mask names and birth dates unless this is on.
    log_personal_data: bool = False

    rate_limit_default: str = "60/minute"
    rate_limit_calculate: str = "30/minute"
    rate_limit_profile_write: str = "30/minute"
    rate_limit_import: str = "5/minute"
    rate_limit_scan: str = "10/minute"

    def cors_origins(self) -> list[str]:
        raw = self.cors_origins_raw.strip()
        if not raw:
            return []
        return [item.strip() for item in raw.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
