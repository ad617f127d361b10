# pos_backend/config.py
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent   # project root
DB_FILE = BASE_DIR / "pos.db"
ENV_FILE = BASE_DIR / ".env"

DEV_JWT_SECRET = "change-me-in-production"


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = f"sqlite:///{DB_FILE}"
    jwt_secret: str = DEV_JWT_SECRET
    jwt_ttl_minutes: int = 60
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Read settings from ``POS_*`` environment variables. A ``.env`` file at
    the project root (or ``env_file``) fills in whatever the real
    environment leaves unset.
    """
    load_dotenv(env_file or ENV_FILE, override=False)

    defaults = Settings()
    try:
        ttl = int(os.environ.get("POS_JWT_TTL_MINUTES", defaults.jwt_ttl_minutes))
    except ValueError:
        raise ValueError("POS_JWT_TTL_MINUTES must be an integer")

    return Settings(
        database_url=os.environ.get("POS_DATABASE_URL", defaults.database_url),
        jwt_secret=os.environ.get("POS_JWT_SECRET", defaults.jwt_secret),
        jwt_ttl_minutes=ttl,
        log_level=os.environ.get("POS_LOG_LEVEL", defaults.log_level).upper(),
        cors_origins=_split_csv(os.environ.get("POS_CORS_ORIGINS", "*")),
    )
