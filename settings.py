import os
from functools import lru_cache
from typing import List


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off", "")


class Settings:
    def __init__(self) -> None:
        self.database_url = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
        self.database_name = os.getenv("DATABASE_NAME", "ecommerce")
        self.port = int(os.getenv("PORT", 8080))
        self.seed_sample_data = _env_flag("SEED_SAMPLE_DATA", True)
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    return Settings()
