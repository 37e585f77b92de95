from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    project_root: Path
    data_dir: Path
    db_path: Path
    league_name: str
    storage_backend: str
    default_location: str
    admin_password: str
    require_scheduled_scores: bool
    supabase_url: str
    supabase_key: str
    request_timeout_seconds: float
    max_retries: int

    @staticmethod
    def from_env() -> "Settings":
        project_root = Path(__file__).resolve().parent.parent
        data_dir = Path(os.getenv("LEAGUE_DATA_DIR", str(project_root / "data")))
        return Settings(
            project_root=project_root,
            data_dir=data_dir,
            db_path=Path(os.getenv("LEAGUE_DB_PATH", str(data_dir / "league.duckdb"))),
            league_name=os.getenv("LEAGUE_NAME", "Manoa Basketball League"),
            storage_backend=os.getenv("LEAGUE_STORAGE_BACKEND", "csv").strip().lower(),
            default_location=os.getenv("LEAGUE_DEFAULT_LOCATION", "Manoa Basketball Gym"),
            admin_password=os.getenv("LEAGUE_ADMIN_PASSWORD", ""),
            require_scheduled_scores=os.getenv("LEAGUE_REQUIRE_SCHEDULED_SCORES", "true").strip().lower()
            in _TRUE_VALUES,
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_ANON_KEY", ""),
            request_timeout_seconds=float(os.getenv("SUPABASE_TIMEOUT_SECONDS", "15")),
            max_retries=int(os.getenv("SUPABASE_MAX_RETRIES", "3")),
        )


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def load_settings() -> Settings:
    settings = Settings.from_env()
    load_dotenv(dotenv_path=settings.project_root / ".env", override=False)
    load_dotenv(override=False)
    settings = Settings.from_env()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings


def today() -> date:
    return date.today()
