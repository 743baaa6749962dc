from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = PROJECT_ROOT / "data"


class AppSettings(BaseSettings):
    log_level: str = "INFO"
    input_csv: Path = DATA_DIR / "income_records.csv"
    export_csv: Path = DATA_DIR / "validated_records.csv"
    snapshot_file: Path = DATA_DIR / "income_records.dat"
    backup_retention_days: int = 30

    model_config = SettingsConfigDict(
        env_prefix="INCOME_TAX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@cache
def config() -> AppSettings:
    return AppSettings()
